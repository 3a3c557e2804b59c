import pytest

from app.core.errors import Conflict, Forbidden, NotFound, ValidationError
from app.modules.badges.schemas import BadgeAward, BadgeCreate, BadgeUpdate, QuestCreate, QuestTaskAdd
from app.modules.badges.service import BadgeService, QuestService
from app.modules.profiles.service import ProfileService
from app.modules.tasks.schemas import TaskCreate
from app.modules.tasks.service import TaskService


@pytest.fixture(name="badge")
def badge_fixture(db, alice):
    return BadgeService(db).create_badge(alice, BadgeCreate(title="Composter"))


def create_task(db, actor, **fields):
    task, _ = TaskService(db).create_task(actor, TaskCreate(**fields))
    return task


def test_self_award_is_idempotent(db, bob, badge):
    service = BadgeService(db)

    first, created = service.award_badge(bob, badge.id, BadgeAward(user_id=bob.id))
    second, created_again = service.award_badge(bob, badge.id, BadgeAward(user_id=bob.id))

    assert created and not created_again
    assert first["id"] == second["id"]
    assert [b["badge_title"] for b in service.list_user_badges(bob, bob.id)] == ["Composter"]


def test_award_to_someone_else_needs_their_task(db, alice, bob, carol, badge):
    service = BadgeService(db)
    with pytest.raises(Forbidden):
        service.award_badge(carol, badge.id, BadgeAward(user_id=bob.id))

    task = create_task(db, alice, title="Turn the pile", assignees=[bob.id])
    view, created = service.award_badge(alice, badge.id, BadgeAward(user_id=bob.id, task_id=task.id))
    assert created
    assert view["task_id"] == task.id


def test_award_for_unknown_task_is_rejected(db, alice, badge):
    with pytest.raises(ValidationError):
        BadgeService(db).award_badge(alice, badge.id, BadgeAward(user_id=alice.id, task_id="missing"))


def test_only_creator_edits_badge(db, alice, bob, badge):
    service = BadgeService(db)
    with pytest.raises(Forbidden):
        service.update_badge(bob, badge.id, BadgeUpdate(title="Mine now"))
    assert service.update_badge(alice, badge.id, BadgeUpdate(description="Kept a pile hot")).description == "Kept a pile hot"
    with pytest.raises(NotFound):
        service.get_badge(bob, "missing")


def test_quest_links_tasks_in_order(db, alice, badge):
    first = create_task(db, alice, title="Collect greens")
    second = create_task(db, alice, title="Collect browns")
    service = QuestService(db)

    quest = service.create_quest(alice, QuestCreate(
        title="Compost basics", badge_id=badge.id, required_tasks_count=2, task_ids=[first.id, second.id, first.id],
    ))
    assert service.quest_view(quest)["task_ids"] == [first.id, second.id]

    with pytest.raises(Conflict):
        service.add_task(alice, quest.id, QuestTaskAdd(task_id=second.id))

    service.remove_task(alice, quest.id, first.id)
    assert service.quest_view(quest)["task_ids"] == [second.id]
    with pytest.raises(NotFound):
        service.remove_task(alice, quest.id, first.id)


def test_quest_cannot_link_hidden_task_or_unknown_badge(db, alice, carol):
    hidden = create_task(db, alice, title="Private chore")
    service = QuestService(db)

    with pytest.raises(NotFound):
        service.create_quest(carol, QuestCreate(title="Sneaky", task_ids=[hidden.id]))
    with pytest.raises(ValidationError):
        service.create_quest(carol, QuestCreate(title="Ghost badge", badge_id="missing"))


def test_progress_is_empty_before_any_completion(db, alice, bob):
    quest = QuestService(db).create_quest(alice, QuestCreate(title="Starter"))
    assert QuestService(db).get_progress(bob, quest.id) is None
    assert QuestService(db).list_progress(bob) == []


def test_profile_search_matches_name_or_email(db, alice, bob, carol):
    service = ProfileService(db)

    assert [p.user_id for p in service.search_profiles(alice, "BO")] == [bob.id]
    assert [p.user_id for p in service.search_profiles(alice, "example.com", limit=2)] == [alice.id, bob.id]
