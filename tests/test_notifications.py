import pytest

from app.core.errors import Conflict, NotFound
from app.core.notifier import Notifier
from app.database.session import transaction
from app.modules.notifications.models import NotificationLog, NotificationSetting
from app.modules.notifications.schemas import NotificationSettingsUpdate
from app.modules.notifications.service import NotificationService
from app.modules.projects.schemas import MemberInvite
from app.modules.projects.service import MemberService


def logs_for(db, actor):
    return db.query(NotificationLog).filter(NotificationLog.user_id == actor.id).all()


def test_events_are_delivered_only_after_commit(db, alice):
    notifier = Notifier.for_session(db)
    with transaction(db):
        notifier.notify(alice.id, "task_assigned", {"task_id": "t"})
        assert logs_for(db, alice) == []
    assert [log.type for log in logs_for(db, alice)] == ["task_assigned"]


def test_events_are_discarded_on_rollback(db, alice):
    notifier = Notifier.for_session(db)
    with pytest.raises(RuntimeError):
        with transaction(db):
            db.query(NotificationSetting).count()
            notifier.notify(alice.id, "task_assigned", {"task_id": "t"})
            raise RuntimeError("boom")
    db.commit()
    assert logs_for(db, alice) == []


def test_failed_invitation_sends_nothing(db, alice, bob, make_project):
    project = make_project(alice)
    MemberService(db).invite_member(alice, project.id, MemberInvite(email=bob.email))
    with pytest.raises(Conflict):
        MemberService(db).invite_member(alice, project.id, MemberInvite(email=bob.email))

    assert [log.type for log in logs_for(db, bob)] == ["project_invitation"]


def test_disabled_setting_suppresses_delivery(db, alice, bob, make_project):
    NotificationService(db).update_settings(bob, NotificationSettingsUpdate(project_invitations=False))
    project = make_project(alice)

    MemberService(db).invite_member(alice, project.id, MemberInvite(email=bob.email))

    assert logs_for(db, bob) == []


def test_reminders_off_suppresses_everything(db, alice):
    setting = db.query(NotificationSetting).filter(NotificationSetting.user_id == alice.id).one()
    setting.reminder_timing = "off"
    db.commit()

    Notifier.for_session(db).notify(alice.id, "badge_earned", {})
    db.commit()

    assert logs_for(db, alice) == []


def test_mark_read_is_recipient_only(db, alice, bob):
    log = NotificationLog(user_id=alice.id, type="task_assigned", content={})
    db.add(log)
    db.commit()

    with pytest.raises(NotFound):
        NotificationService(db).mark_read(bob, log.id)
    assert NotificationService(db).mark_read(alice, log.id).is_read is True


def test_mark_all_read(db, alice):
    db.add_all([NotificationLog(user_id=alice.id, type="task_assigned", content={}) for _ in range(3)])
    db.commit()

    assert NotificationService(db).mark_all_read(alice) == 3
    assert NotificationService(db).list_notifications(alice, unread_only=True) == []


def test_settings_created_on_first_read(db):
    from app.core.policies import Actor

    newcomer = Actor(id="newcomer", email="new@example.com")
    setting = NotificationService(db).get_settings(newcomer)
    assert setting.user_id == "newcomer"
    assert setting.reminder_timing == "immediate"
