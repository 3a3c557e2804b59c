from datetime import date

import pytest

from app.core.membership import MembershipResolver
from app.core.side_effects import SideEffects
from app.modules.badges.models import Badge, BadgeQuest, BadgeQuestTask, UserBadge, UserQuestProgress
from app.modules.events.models import Event
from app.modules.items.models import Item
from app.modules.profiles.models import Profile
from app.modules.projects.models import Project, ProjectMember
from app.modules.projects.schemas import ProjectUpdate
from app.modules.projects.service import ProjectService
from app.modules.tasks.models import Task


def current_projects(db, actor):
    profile = db.query(Profile).filter(Profile.user_id == actor.id).one()
    db.refresh(profile)
    return profile.current_projects


def effects_for(db):
    return SideEffects(db, MembershipResolver(db))


def test_project_creation_materializes_owner_membership(db, alice, bob, make_project):
    project = make_project(alice, team=[bob.id])

    owner = db.query(ProjectMember).filter(ProjectMember.project_id == project.id).one()
    assert owner.user_id == alice.id
    assert owner.role == "owner"
    assert owner.invitation_status == "accepted"
    assert owner.invitation_email == alice.email
    assert current_projects(db, alice) == [project.id]
    assert current_projects(db, bob) == [project.id]


def test_team_removal_and_readd_round_trip(db, alice, bob, make_project):
    project = make_project(alice, team=[bob.id])
    service = ProjectService(db)

    service.update_project(alice, project.id, ProjectUpdate(team=[]))
    assert current_projects(db, bob) == []

    service.update_project(alice, project.id, ProjectUpdate(team=[bob.id]))
    service.update_project(alice, project.id, ProjectUpdate(team=[bob.id, bob.id]))
    assert current_projects(db, bob) == [project.id]


def test_team_removal_keeps_accepted_member(db, alice, bob, make_project, add_member):
    project = make_project(alice, team=[bob.id])
    add_member(alice, project, bob)

    ProjectService(db).update_project(alice, project.id, ProjectUpdate(team=[]))
    assert current_projects(db, bob) == [project.id]


def test_removing_accepted_member_clears_cache(db, alice, bob, make_project, add_member):
    from app.modules.projects.service import MemberService

    project = make_project(alice)
    member = add_member(alice, project, bob)
    assert current_projects(db, bob) == [project.id]

    MemberService(db).remove_member(alice, project.id, member.id)
    assert current_projects(db, bob) == []


def test_project_delete_removes_dependents_and_references(db, alice, bob, make_project, add_member):
    project = make_project(alice)
    other = make_project(alice, title="Pond")
    add_member(alice, project, bob)
    task = Task(title="dig", created_by=alice.id, project_id=project.id, is_project_task=True, assignees=[])
    db.add(task)
    db.flush()
    badge = Badge(title="Digger", created_by=alice.id)
    db.add(badge)
    db.flush()
    db.add_all([
        Item(title="spade", added_by=alice.id, project_id=project.id, assignees=[], tags=[]),
        Item(title="gloves", added_by=alice.id, associated_task_id=task.id, assignees=[], tags=[]),
        Event(title="work day", created_by=alice.id, project_id=project.id, start_date=date(2026, 5, 1), attendees=[]),
        UserBadge(user_id=bob.id, badge_id=badge.id, task_id=task.id),
    ])
    db.commit()
    project_id = project.id

    ProjectService(db).delete_project(alice, project_id)

    assert db.get(Project, project_id) is None
    assert db.query(ProjectMember).filter(ProjectMember.project_id == project_id).count() == 0
    assert db.query(Task).filter(Task.project_id == project_id).count() == 0
    assert db.query(Item).filter(Item.project_id == project_id).count() == 0
    assert db.query(Event).filter(Event.project_id == project_id).count() == 0
    assert db.query(Item).filter(Item.title == "gloves").one().associated_task_id is None
    assert db.query(UserBadge).one().task_id is None
    assert current_projects(db, alice) == [other.id]
    assert current_projects(db, bob) == []


def test_badge_award_is_idempotent(db, alice, bob):
    badge = Badge(title="Sprout", created_by=alice.id)
    db.add(badge)
    db.commit()
    effects = effects_for(db)

    first, created = effects.award_badge(bob.id, badge.id)
    second, created_again = effects.award_badge(bob.id, badge.id)
    db.commit()

    assert created is True
    assert created_again is False
    assert first.id == second.id
    assert db.query(UserBadge).filter(UserBadge.user_id == bob.id).count() == 1


def test_quest_progress_completes_and_awards_quest_badge(db, alice, bob):
    quest_badge = Badge(title="Gardener", created_by=alice.id)
    db.add(quest_badge)
    db.flush()
    quest = BadgeQuest(title="Season", created_by=alice.id, badge_id=quest_badge.id, required_tasks_count=2)
    tasks = [Task(title=f"step {n}", created_by=alice.id, assignees=[bob.id]) for n in range(2)]
    db.add(quest)
    db.add_all(tasks)
    db.flush()
    db.add_all([BadgeQuestTask(quest_id=quest.id, task_id=t.id, order_position=n) for n, t in enumerate(tasks)])
    db.commit()
    effects = effects_for(db)

    effects.record_quest_progress(bob.id, tasks[0])
    effects.record_quest_progress(bob.id, tasks[0])
    db.commit()
    progress = db.query(UserQuestProgress).one()
    assert progress.completed_tasks == [tasks[0].id]
    assert progress.progress_percentage == 50
    assert progress.completed_at is None

    effects.record_quest_progress(bob.id, tasks[1])
    db.commit()
    db.refresh(progress)
    assert progress.progress_percentage == 100
    assert progress.completed_at is not None
    assert db.query(UserBadge).filter(UserBadge.badge_id == quest_badge.id).count() == 1


def test_badge_delete_detaches_tasks_and_quests(db, alice, bob):
    badge = Badge(title="Sprout", created_by=alice.id)
    db.add(badge)
    db.flush()
    task = Task(title="sow", created_by=alice.id, badge_id=badge.id, assignees=[])
    quest = BadgeQuest(title="Spring", created_by=alice.id, badge_id=badge.id)
    db.add_all([task, quest, UserBadge(user_id=bob.id, badge_id=badge.id)])
    db.commit()

    effects_for(db).on_badge_deleted(badge)
    db.commit()

    db.refresh(task)
    db.refresh(quest)
    assert task.badge_id is None
    assert quest.badge_id is None
    assert db.query(UserBadge).count() == 0


def test_failed_creation_side_effect_rolls_back_project(db, alice, bob, make_project, monkeypatch):
    def fail(self, project, creator_email):
        raise RuntimeError("membership write failed")

    monkeypatch.setattr(SideEffects, "on_project_created", fail)

    with pytest.raises(RuntimeError):
        make_project(alice, team=[bob.id])

    assert db.query(Project).count() == 0
    assert db.query(ProjectMember).count() == 0
    assert current_projects(db, bob) == []


def test_failed_team_sync_leaves_team_and_profiles_unchanged(db, alice, bob, carol, make_project, monkeypatch):
    project = make_project(alice, team=[bob.id])
    sync = SideEffects.on_team_changed

    def sync_then_fail(self, project, old_team):
        sync(self, project, old_team)
        raise RuntimeError("notification queue full")

    monkeypatch.setattr(SideEffects, "on_team_changed", sync_then_fail)

    with pytest.raises(RuntimeError):
        ProjectService(db).update_project(alice, project.id, ProjectUpdate(team=[carol.id]))

    db.refresh(project)
    assert project.team == [bob.id]
    assert current_projects(db, bob) == [project.id]
    assert current_projects(db, carol) == []
