"""Tests for the entity stores: validation, ownership and completion rules."""

import asyncio

import pytest

from careeros.exceptions import NotFoundError, StoreTimeoutError, ValidationError
from careeros.services.entity_store import EntityStores


async def test_create_and_get_enrollment(stores):
    record = await stores.enrollments.create(1, {"courseId": 3})

    assert record.kind == "course"
    assert record.course_id == 3
    assert record.progress == 0
    assert record.is_completed is False

    records = await stores.enrollments.get(1)
    assert [r.id for r in records] == [record.id]
    assert await stores.enrollments.get(2) == []


async def test_create_accepts_snake_case_fields(stores):
    record = await stores.projects.create(1, {"project_id": 4})
    assert record.project_id == 4


@pytest.mark.parametrize("payload", [{}, {"courseId": "abc"}, {"courseId": 0}, None])
async def test_create_rejects_malformed_payload(stores, payload):
    with pytest.raises(ValidationError):
        await stores.enrollments.create(1, payload)


async def test_duplicate_enrollment_rejected(stores):
    await stores.enrollments.create(1, {"courseId": 3})
    with pytest.raises(ValidationError):
        await stores.enrollments.create(1, {"courseId": 3})
    # Another user may enroll in the same course
    await stores.enrollments.create(2, {"courseId": 3})


async def test_quiz_result_validation(stores):
    with pytest.raises(ValidationError) as exc_info:
        await stores.quiz_results.create(1, {"quizType": "career"})
    assert exc_info.value.errors

    record = await stores.quiz_results.create(1, {
        "quizType": "career",
        "result": {"score": 42},
        "recommendedCareer": "Data Engineer",
        "recommendedNiches": ["streaming", "warehousing"],
    })
    assert record.recommended_niches == ["streaming", "warehousing"]
    assert record.result == {"score": 42}


async def test_update_progress(stores):
    record = await stores.skills.create(1, {"softSkillId": 2})
    updated = await stores.skills.update(record.id, {"progress": 40}, user_id=1)
    assert updated.progress == 40
    assert updated.is_completed is False


async def test_update_missing_record_raises_not_found(stores):
    with pytest.raises(NotFoundError):
        await stores.enrollments.update(999, {"progress": 10})


async def test_update_other_users_record_raises_not_found(stores):
    record = await stores.projects.create(1, {"projectId": 77})
    with pytest.raises(NotFoundError):
        await stores.projects.mark_completed(record.id, user_id=5)

    (unchanged,) = await stores.projects.get(1)
    assert unchanged.is_completed is False


async def test_update_rejects_invalid_partial(stores):
    record = await stores.enrollments.create(1, {"courseId": 3})
    with pytest.raises(ValidationError):
        await stores.enrollments.update(record.id, {"progress": 140}, user_id=1)


async def test_completed_requires_full_progress(stores):
    record = await stores.enrollments.create(1, {"courseId": 3})
    with pytest.raises(ValidationError):
        await stores.enrollments.update(record.id, {"progress": 60, "isCompleted": True}, user_id=1)


async def test_mark_completed_sets_progress_to_100(stores):
    record = await stores.enrollments.create(1, {"courseId": 3})

    completed, transitioned = await stores.enrollments.mark_completed(record.id, 1)

    assert transitioned is True
    assert completed.is_completed is True
    assert completed.progress == 100


async def test_mark_completed_twice_is_a_no_op(stores):
    record = await stores.enrollments.create(1, {"courseId": 3})
    await stores.enrollments.mark_completed(record.id, 1)

    again, transitioned = await stores.enrollments.mark_completed(record.id, 1)

    assert transitioned is False
    assert again.is_completed is True
    assert again.progress == 100


async def test_completed_record_cannot_be_reopened(stores):
    record = await stores.projects.create(1, {"projectId": 8})
    await stores.projects.mark_completed(record.id, 1)

    with pytest.raises(ValidationError):
        await stores.projects.update(record.id, {"progress": 50}, user_id=1)
    with pytest.raises(ValidationError):
        await stores.projects.update(record.id, {"isCompleted": False}, user_id=1)


async def test_completion_invariant_holds_for_all_records(stores, seed):
    await seed.enrollment(1, 1, progress=100, completed=True)
    await seed.enrollment(1, 2, progress=30)
    record = await stores.enrollments.create(1, {"courseId": 3})
    await stores.enrollments.mark_completed(record.id, 1)

    for r in await stores.enrollments.get(1):
        if r.is_completed:
            assert r.progress == 100


async def test_achievements_are_always_completed(stores):
    record = await stores.achievements.create(1, {"achievementId": 6})
    assert record.kind == "achievement"
    assert record.is_completed is True
    assert record.progress is None


async def test_posts_listed_newest_first(stores):
    first = await stores.posts.create(1, {"communityId": 2, "title": "Hi", "content": "First"})
    second = await stores.posts.create(3, {"communityId": 2, "title": "Hey", "content": "Second"})
    await stores.posts.create(1, {"communityId": 9, "title": "Elsewhere", "content": "Other"})

    posts = await stores.posts.get_by_community(2)

    assert [p.id for p in posts] == [second.id, first.id]
    assert posts[0].type == "discussion"


async def test_slow_store_call_times_out(session_factory):
    stores = EntityStores.from_session_factory(session_factory, timeout_seconds=0.05)

    async def slow_get(user_id):
        await asyncio.sleep(1)
        return []

    stores.enrollments._get = slow_get

    with pytest.raises(StoreTimeoutError) as exc_info:
        await stores.enrollments.get(1)
    assert exc_info.value.store == "enrollments"
    assert exc_info.value.operation == "get"
