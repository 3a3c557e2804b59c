import pytest

from app.core.errors import Conflict, Forbidden, NotFound, ValidationError
from app.modules.badges.models import Badge, BadgeQuest, BadgeQuestTask, UserBadge
from app.modules.items.models import Item
from app.modules.notifications.models import NotificationLog
from app.modules.tasks.models import Task
from app.modules.tasks.schemas import TaskCreate, TaskUpdate
from app.modules.tasks.service import TaskService


@pytest.fixture(name="badge")
def badge_fixture(db, alice):
    badge = Badge(title="Seed saver", created_by=alice.id)
    db.add(badge)
    db.commit()
    return badge


def create(db, actor, **fields):
    task, _ = TaskService(db).create_task(actor, TaskCreate(**fields))
    return task


def badges_of(db, actor):
    return db.query(UserBadge).filter(UserBadge.user_id == actor.id).all()


def test_assignee_can_read_personal_task(db, alice, bob, carol):
    task = create(db, alice, title="Water seedlings", assignees=[bob.id])

    assert task.assigned_to == bob.id
    assert TaskService(db).get_task(bob, task.id).id == task.id
    with pytest.raises(NotFound):
        TaskService(db).get_task(carol, task.id)


def test_assignment_notifies_assignee_after_commit(db, alice, bob):
    task = create(db, alice, title="Water seedlings", assignees=[bob.id])

    logs = db.query(NotificationLog).filter(NotificationLog.user_id == bob.id).all()
    assert [log.type for log in logs] == ["task_assigned"]
    assert logs[0].content["task_id"] == task.id


def test_legacy_assigned_to_is_used_when_assignees_empty(db, alice, bob):
    task = create(db, alice, title="Mulch", assigned_to=bob.id)
    assert task.assignees == [bob.id]
    assert task.assigned_to == bob.id


def test_unknown_assignee_is_rejected(db, alice):
    with pytest.raises(ValidationError):
        create(db, alice, title="Mulch", assignees=["ghost"])
    assert db.query(Task).count() == 0


def test_project_task_requires_project(db, alice):
    with pytest.raises(ValidationError):
        create(db, alice, title="Fence", is_project_task=True)


def test_project_task_requires_membership(db, alice, carol, make_project):
    project = make_project(alice)
    with pytest.raises(NotFound):
        create(db, carol, title="Fence", is_project_task=True, project_id=project.id)


def test_completion_without_verification_awards_immediately(db, alice, bob, badge):
    task = create(db, alice, title="Save seeds", assignees=[bob.id], badge_id=badge.id)

    done, outcome = TaskService(db).complete_task(bob, task.id)

    assert outcome == "awarded"
    assert done.status == "done"
    assert done.completed_by == bob.id
    assert [ub.badge_id for ub in badges_of(db, bob)] == [badge.id]


def test_completion_without_badge_is_just_completed(db, alice):
    task = create(db, alice, title="Sweep")
    _, outcome = TaskService(db).complete_task(alice, task.id)
    assert outcome == "completed"
    with pytest.raises(Conflict):
        TaskService(db).complete_task(alice, task.id)


def test_verified_completion_awards_after_approval(db, alice, bob, badge):
    task = create(db, alice, title="Build bed", assignees=[bob.id], badge_id=badge.id,
                  completion_verification=True)
    service = TaskService(db)

    _, outcome = service.complete_task(bob, task.id)
    assert outcome == "pending_verification"
    assert task.verification_status == "pending"
    assert badges_of(db, bob) == []

    with pytest.raises(Forbidden):
        service.verify_task(bob, task.id, True)

    verified, outcome = TaskService(db).verify_task(alice, task.id, True)
    assert outcome == "awarded"
    assert verified.verification_status == "approved"
    assert len(badges_of(db, bob)) == 1


def test_assignee_cannot_change_verification_or_badge(db, alice, bob, badge):
    other = Badge(title="Trophy", created_by=bob.id)
    db.add(other)
    db.commit()
    task = create(db, alice, title="Build bed", assignees=[bob.id], badge_id=badge.id,
                  completion_verification=True)
    service = TaskService(db)

    with pytest.raises(Forbidden):
        service.update_task(bob, task.id, TaskUpdate(completion_verification=False))
    with pytest.raises(Forbidden):
        service.update_task(bob, task.id, TaskUpdate(badge_id=other.id))

    _, outcome = service.complete_task(bob, task.id)
    assert outcome == "pending_verification"
    assert badges_of(db, bob) == []
    db.refresh(task)
    assert task.badge_id == badge.id


def test_creator_can_change_verification_and_badge(db, alice, bob, badge):
    task = create(db, alice, title="Build bed", assignees=[bob.id])
    updated, _ = TaskService(db).update_task(alice, task.id, TaskUpdate(badge_id=badge.id, completion_verification=True))
    assert updated.badge_id == badge.id
    assert updated.completion_verification is True

    types = {log.type for log in db.query(NotificationLog).filter(NotificationLog.user_id == alice.id)}
    assert "task_verification_requested" in types


def test_rejected_completion_reopens_task(db, alice, bob, badge):
    task = create(db, alice, title="Build bed", assignees=[bob.id], badge_id=badge.id,
                  completion_verification=True)
    TaskService(db).complete_task(bob, task.id)

    rejected, outcome = TaskService(db).verify_task(alice, task.id, False)

    assert outcome == "rejected"
    assert rejected.status == "in_progress"
    assert rejected.verification_status == "rejected"
    assert rejected.completed_by is None
    assert badges_of(db, bob) == []
    with pytest.raises(Conflict):
        TaskService(db).verify_task(alice, task.id, True)


def test_creator_completion_skips_verification(db, alice, bob, badge):
    task = create(db, alice, title="Build bed", assignees=[bob.id], badge_id=badge.id,
                  completion_verification=True)

    _, outcome = TaskService(db).complete_task(alice, task.id)

    assert outcome == "awarded"
    assert task.verification_status == "approved"
    assert len(badges_of(db, bob)) == 1


def test_badge_earned_once_across_tasks(db, alice, bob, badge):
    first = create(db, alice, title="One", assignees=[bob.id], badge_id=badge.id)
    second = create(db, alice, title="Two", assignees=[bob.id], badge_id=badge.id)

    TaskService(db).complete_task(bob, first.id)
    TaskService(db).complete_task(bob, second.id)

    earned = badges_of(db, bob)
    assert len(earned) == 1
    assert earned[0].task_id == first.id


def test_status_update_to_done_runs_completion(db, alice, bob, badge):
    task = create(db, alice, title="Harvest", assignees=[bob.id], badge_id=badge.id)

    _, outcome = TaskService(db).update_task(bob, task.id, TaskUpdate(status="done"))
    assert outcome == "awarded"

    reopened, outcome = TaskService(db).update_task(bob, task.id, TaskUpdate(status="todo"))
    assert outcome is None
    assert reopened.completed_by is None


def test_quest_progress_follows_task_completion(db, alice, bob):
    task = create(db, alice, title="Compost", assignees=[bob.id])
    quest = BadgeQuest(title="Soil", created_by=alice.id, required_tasks_count=2)
    db.add(quest)
    db.flush()
    db.add(BadgeQuestTask(quest_id=quest.id, task_id=task.id))
    db.commit()

    TaskService(db).complete_task(bob, task.id)

    from app.modules.badges.models import UserQuestProgress
    progress = db.query(UserQuestProgress).filter(UserQuestProgress.user_id == bob.id).one()
    assert progress.completed_tasks == [task.id]
    assert progress.progress_percentage == 50


def test_delete_task_detaches_items_and_quests(db, alice):
    task = create(db, alice, title="Dig pond")
    item = Item(title="liner", added_by=alice.id, associated_task_id=task.id, assignees=[], tags=[])
    quest = BadgeQuest(title="Water", created_by=alice.id)
    db.add_all([item, quest])
    db.flush()
    db.add(BadgeQuestTask(quest_id=quest.id, task_id=task.id))
    db.commit()

    TaskService(db).delete_task(alice, task.id)

    db.refresh(item)
    assert item.associated_task_id is None
    assert db.query(BadgeQuestTask).count() == 0
    assert db.get(Task, task.id) is None


def test_list_tasks_shows_only_visible(db, alice, bob, make_project, add_member):
    project = make_project(alice)
    add_member(alice, project, bob)
    private = create(db, alice, title="Private")
    shared = create(db, alice, title="Shared", is_project_task=True, project_id=project.id)
    mine = create(db, alice, title="Mine", assignees=[bob.id])

    visible = {t.id for t in TaskService(db).list_tasks(bob)}
    assert visible == {shared.id, mine.id}
    assert private.id not in visible
    assert [t.id for t in TaskService(db).list_tasks(bob, assigned_to_me=True)] == [mine.id]
    assert [t.id for t in TaskService(db).list_tasks(bob, project_id=project.id)] == [shared.id]
