"""
Tests for parent-child association.
"""

import pytest

from edugrade.core.models import Invitation
from edugrade.engagement.parent_binding import (
    BindingTarget,
    ChildBindingError,
    child_ids,
    find_child,
    link_child,
    list_children,
    list_parents,
    resolve_binding_target,
    unlink_child,
)


class TestResolveBindingTarget:
    async def test_invitation_code_wins(self, db_session, school, grade):
        db_session.add(Invitation(school_id=school.id, grade_id=grade.id, code="K7QX2M"))
        await db_session.commit()

        target = await resolve_binding_target(
            db_session, invite_code="k7qx2m", school_id=None, grade_id=None
        )

        assert target == BindingTarget(school_id=school.id, grade_id=grade.id)

    async def test_unknown_code(self, db_session):
        with pytest.raises(ChildBindingError, match="invalid"):
            await resolve_binding_target(db_session, invite_code="ZZZZZZ")

    async def test_explicit_school_and_grade(self, db_session, school, grade):
        target = await resolve_binding_target(db_session, school_id=school.id, grade_id=grade.id)

        assert target.grade_id == grade.id

    async def test_nothing_given(self, db_session):
        with pytest.raises(ChildBindingError):
            await resolve_binding_target(db_session)


class TestFindChild:
    async def test_exact_name_in_class(self, db_session, school, grade, school_class, student):
        target = BindingTarget(school_id=school.id, grade_id=grade.id)

        found = await find_child(db_session, target, class_id=school_class.id, name=" Zhang San ")

        assert found.id == student.id

    async def test_name_must_match_exactly(self, db_session, school, grade, school_class, student):
        target = BindingTarget(school_id=school.id, grade_id=grade.id)

        assert await find_child(db_session, target, class_id=school_class.id, name="zhang san") is None


class TestLinking:
    async def test_link_list_unlink(self, db_session, parent_user, student):
        await link_child(db_session, parent_user, student)
        await db_session.commit()

        assert await child_ids(db_session, parent_user.id) == {student.id}
        assert [s.id for s in await list_children(db_session, parent_user.id)] == [student.id]
        assert [p.id for p in await list_parents(db_session, student.id)] == [parent_user.id]

        assert await unlink_child(db_session, parent_user.id, student.id) is True
        await db_session.commit()
        assert await child_ids(db_session, parent_user.id) == set()
        assert await unlink_child(db_session, parent_user.id, student.id) is False

    async def test_duplicate_link_refused(self, db_session, parent_user, student):
        await link_child(db_session, parent_user, student)
        await db_session.commit()

        with pytest.raises(ChildBindingError, match="already linked"):
            await link_child(db_session, parent_user, student)

    async def test_only_parents_can_be_linked(self, db_session, teacher_user, student):
        with pytest.raises(ChildBindingError, match="Only parent"):
            await link_child(db_session, teacher_user, student)
