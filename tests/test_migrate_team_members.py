from app.modules.profiles.models import Profile
from app.modules.projects.models import Project, ProjectMember
from app.scripts.migrate_team_members import migrate_all


def test_backfills_legacy_team_once(db, alice, bob, carol):
    # a project written before membership rows existed
    project = Project(title="Legacy", created_by=alice.id, team=[bob.id, carol.id, "no-profile"])
    db.add(project)
    db.commit()

    result = migrate_all(db)

    assert result == {"projects": 1, "created": 3}
    rows = {
        m.user_id: (m.role, m.invitation_status)
        for m in db.query(ProjectMember).filter(ProjectMember.project_id == project.id)
    }
    assert rows == {
        alice.id: ("owner", "accepted"),
        bob.id: ("contributor", "accepted"),
        carol.id: ("contributor", "accepted"),
    }
    bob_profile = db.query(Profile).filter(Profile.user_id == bob.id).one()
    db.refresh(bob_profile)
    assert bob_profile.current_projects == [project.id]

    assert migrate_all(db) == {"projects": 1, "created": 0}
    assert db.query(ProjectMember).filter(ProjectMember.project_id == project.id).count() == 3
