from app.config.policy_config import Role
from app.core.membership import MembershipResolver
from app.modules.projects.models import ProjectMember


def test_role_of_reflects_accepted_rows(db, alice, bob, carol, make_project, add_member):
    project = make_project(alice)
    add_member(alice, project, bob, role="admin")
    add_member(alice, project, carol, accept=None)
    resolver = MembershipResolver(db)

    assert resolver.role_of(alice.id, project) is Role.OWNER
    assert resolver.role_of(bob.id, project.id) is Role.ADMIN
    assert resolver.role_of(carol.id, project) is None
    assert resolver.has_role(bob.id, project, {Role.ADMIN, Role.OWNER})
    assert not resolver.is_member(carol.id, project)


def test_cached_answers_refresh_after_invalidate(db, alice, bob, make_project, add_member):
    project = make_project(alice)
    member = add_member(alice, project, bob)
    resolver = MembershipResolver(db)
    assert resolver.is_member(bob.id, project)

    db.query(ProjectMember).filter(ProjectMember.id == member.id).delete()
    db.commit()
    assert resolver.is_member(bob.id, project)

    resolver.invalidate(project.id)
    assert not resolver.is_member(bob.id, project)


def test_candidate_project_ids(db, alice, bob, carol, make_project, add_member):
    owned = make_project(alice)
    joined = make_project(carol, title="Pond")
    legacy = make_project(carol, title="Meadow", team=[alice.id])
    make_project(carol, title="Invite only")
    add_member(carol, joined, alice)

    assert MembershipResolver(db).candidate_project_ids(alice.id) == {owned.id, joined.id, legacy.id}
    assert MembershipResolver(db).candidate_project_ids(bob.id) == set()
