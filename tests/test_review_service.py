from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from recallbook.db.sqlite import (
    append_review,
    create_project,
    create_session,
    get_latest_review,
    insert_questions,
)
from recallbook.models.question import ReviewQuestionCreate
from recallbook.services.review_service import (
    ProjectNotFoundError,
    QuestionNotFoundError,
    SessionNotFoundError,
    create_question,
    get_review_stats,
    list_due_questions,
    preview_for_question,
    record_review,
)
from recallbook.services.scheduler import InvalidArgumentError, NextReview
from tests.conftest import OTHER_USER_ID, USER_ID

TODAY = date(2030, 1, 15)


def _created_on(question) -> date:
    return date.fromisoformat(question.created_at[:10])


@pytest.mark.asyncio
async def test_first_review_starts_from_initial_state(db, question):
    row = await record_review(db, USER_ID, question.id, 5, today=TODAY)

    assert row.self_rating == 5
    assert row.repetitions == 1
    assert row.interval_days == 1
    assert row.ease_factor == pytest.approx(2.6)
    assert row.next_review_date == TODAY + timedelta(days=1)


@pytest.mark.asyncio
async def test_reviews_build_on_latest_state(db, question):
    for _ in range(3):
        row = await record_review(db, USER_ID, question.id, 4, today=TODAY)

    assert row.seq == 3
    assert row.repetitions == 3
    assert row.interval_days == 15  # round(6 * 2.5)


@pytest.mark.asyncio
async def test_lapse_is_appended_not_overwritten(db, question):
    await record_review(db, USER_ID, question.id, 5, today=TODAY)
    await record_review(db, USER_ID, question.id, 5, today=TODAY)
    lapse = await record_review(db, USER_ID, question.id, 1, today=TODAY)

    assert lapse.repetitions == 0
    assert lapse.interval_days == 1
    assert lapse.ease_factor == pytest.approx(2.7)
    assert lapse.seq == 3


@pytest.mark.asyncio
async def test_reviewed_at_sets_the_base_date(db, question):
    reviewed_at = datetime(2030, 2, 1, 23, 30, tzinfo=timezone(timedelta(hours=9)))

    row = await record_review(
        db, USER_ID, question.id, 4, today=TODAY, reviewed_at=reviewed_at
    )

    assert row.next_review_date == date(2030, 2, 2)
    assert row.reviewed_at == "2030-02-01T14:30:00.000000+00:00"


@pytest.mark.asyncio
async def test_backdated_review_still_becomes_current_state(db, question):
    nine = datetime(2030, 1, 15, 9, 0, tzinfo=timezone.utc)
    for _ in range(2):
        await record_review(db, USER_ID, question.id, 5, today=TODAY, reviewed_at=nine)

    # client clock five minutes behind the earlier reviews
    lapse = await record_review(
        db,
        USER_ID,
        question.id,
        1,
        today=TODAY,
        reviewed_at=nine - timedelta(minutes=5),
    )

    assert lapse.repetitions == 0
    assert await get_latest_review(db, USER_ID, question.id) == lapse
    due = await list_due_questions(db, USER_ID, TODAY + timedelta(days=1))
    assert [q.id for q in due] == [question.id]
    assert due[0].last_review == lapse


@pytest.mark.asyncio
@pytest.mark.parametrize("rating", [0, 6])
async def test_out_of_range_rating_records_nothing(db, question, rating):
    with pytest.raises(InvalidArgumentError):
        await record_review(db, USER_ID, question.id, rating, today=TODAY)

    assert await get_latest_review(db, USER_ID, question.id) is None


@pytest.mark.asyncio
async def test_review_of_another_users_question_is_not_found(db, question):
    with pytest.raises(QuestionNotFoundError):
        await record_review(db, OTHER_USER_ID, question.id, 4, today=TODAY)


@pytest.mark.asyncio
async def test_sub_floor_ease_in_history_is_clamped(db, question):
    drifted = NextReview(
        next_review_date=TODAY, interval_days=10, ease_factor=1.05, repetitions=5
    )
    await append_review(db, USER_ID, question.id, drifted, self_rating=3)

    row = await record_review(db, USER_ID, question.id, 3, today=TODAY)

    assert row.ease_factor == 1.3
    assert row.interval_days == 13


@pytest.mark.asyncio
async def test_never_reviewed_question_is_due_the_day_after_creation(db, question):
    created_on = _created_on(question)

    assert await list_due_questions(db, USER_ID, created_on) == []
    due = await list_due_questions(db, USER_ID, created_on + timedelta(days=1))

    assert [q.id for q in due] == [question.id]
    assert due[0].last_review is None


@pytest.mark.asyncio
async def test_due_boundary_is_inclusive(db, question):
    await append_review(
        db,
        USER_ID,
        question.id,
        NextReview(
            next_review_date=TODAY, interval_days=6, ease_factor=2.5, repetitions=2
        ),
        self_rating=4,
    )

    due_today = await list_due_questions(db, USER_ID, TODAY)
    due_yesterday = await list_due_questions(db, USER_ID, TODAY - timedelta(days=1))

    assert [q.id for q in due_today] == [question.id]
    assert due_today[0].last_review.next_review_date == TODAY
    assert due_yesterday == []


@pytest.mark.asyncio
async def test_due_query_uses_only_the_latest_row(db, question):
    old_due = NextReview(
        next_review_date=TODAY - timedelta(days=5),
        interval_days=1,
        ease_factor=2.5,
        repetitions=1,
    )
    rescheduled = NextReview(
        next_review_date=TODAY + timedelta(days=6),
        interval_days=6,
        ease_factor=2.5,
        repetitions=2,
    )
    await append_review(db, USER_ID, question.id, old_due, self_rating=4)
    await append_review(db, USER_ID, question.id, rescheduled, self_rating=4)

    assert await list_due_questions(db, USER_ID, TODAY) == []


@pytest.mark.asyncio
async def test_due_query_filters_by_project_and_owner(db, question):
    other_project = await create_project(db, USER_ID, "tapl")
    [other] = await insert_questions(
        db,
        USER_ID,
        [ReviewQuestionCreate(project_id=other_project.id, question="Q", answer="A")],
    )
    later = _created_on(question) + timedelta(days=30)

    everything = await list_due_questions(db, USER_ID, later)
    only_tapl = await list_due_questions(db, USER_ID, later, project_id=other_project.id)

    assert {q.id for q in everything} == {question.id, other.id}
    assert [q.id for q in only_tapl] == [other.id]
    assert await list_due_questions(db, OTHER_USER_ID, later) == []
    assert len(await list_due_questions(db, USER_ID, later, limit=1)) == 1


@pytest.mark.asyncio
async def test_due_questions_are_ordered_by_due_date(db, question):
    [newer] = await insert_questions(
        db,
        USER_ID,
        [ReviewQuestionCreate(project_id=question.project_id, question="Q", answer="A")],
    )
    await append_review(
        db,
        USER_ID,
        question.id,
        NextReview(
            next_review_date=TODAY, interval_days=1, ease_factor=2.5, repetitions=1
        ),
    )
    await append_review(
        db,
        USER_ID,
        newer.id,
        NextReview(
            next_review_date=TODAY - timedelta(days=2),
            interval_days=1,
            ease_factor=2.5,
            repetitions=1,
        ),
    )

    due = await list_due_questions(db, USER_ID, TODAY)

    assert [q.id for q in due] == [newer.id, question.id]


@pytest.mark.asyncio
async def test_preview_does_not_record(db, question):
    previews = await preview_for_question(db, USER_ID, question.id, TODAY)

    assert [p.rating for p in previews] == [1, 2, 3, 4, 5]
    assert previews[4].ease_factor == pytest.approx(2.6)
    assert await get_latest_review(db, USER_ID, question.id) is None


@pytest.mark.asyncio
async def test_create_question_requires_own_project(db, question):
    body = ReviewQuestionCreate(project_id=question.project_id, question="Q", answer="A")

    with pytest.raises(ProjectNotFoundError):
        await create_question(db, OTHER_USER_ID, body)
    created = await create_question(db, USER_ID, body)

    assert created.project_id == question.project_id
    assert await get_latest_review(db, USER_ID, created.id) is None


@pytest.mark.asyncio
async def test_create_question_requires_own_session_in_same_project(db, question):
    theirs = await create_project(db, OTHER_USER_ID, "sicp")
    their_session = await create_session(
        db, OTHER_USER_ID, theirs.id, {"date": "2030-01-15"}
    )
    tapl = await create_project(db, USER_ID, "tapl")
    tapl_session = await create_session(db, USER_ID, tapl.id, {"date": "2030-01-15"})
    own_session = await create_session(
        db, USER_ID, question.project_id, {"date": "2030-01-15"}
    )

    for session_id in (their_session.id, tapl_session.id, "nope"):
        body = ReviewQuestionCreate(
            project_id=question.project_id,
            session_id=session_id,
            question="Q",
            answer="A",
        )
        with pytest.raises(SessionNotFoundError):
            await create_question(db, USER_ID, body)

    created = await create_question(
        db,
        USER_ID,
        ReviewQuestionCreate(
            project_id=question.project_id,
            session_id=own_session.id,
            question="Q",
            answer="A",
        ),
    )
    assert created.session_id == own_session.id


@pytest.mark.asyncio
async def test_stats_count_due_and_reviewed_today(db, question):
    tapl = await create_project(db, USER_ID, "tapl", title="Types and Programming Languages")
    [other] = await insert_questions(
        db,
        USER_ID,
        [ReviewQuestionCreate(project_id=tapl.id, question="Q", answer="A")],
    )
    # reviewed on TODAY and rescheduled, so not due any more
    await record_review(
        db,
        USER_ID,
        other.id,
        5,
        today=TODAY,
        reviewed_at=datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc),
    )
    # drifted into the past, so due
    await append_review(
        db,
        USER_ID,
        question.id,
        NextReview(
            next_review_date=TODAY - timedelta(days=1),
            interval_days=1,
            ease_factor=2.5,
            repetitions=1,
        ),
        reviewed_at=datetime(2030, 1, 13, tzinfo=timezone.utc),
        self_rating=4,
    )

    stats = await get_review_stats(db, USER_ID, TODAY)

    assert stats.total_questions == 2
    assert stats.due_today == 1
    assert stats.reviewed_today == 1
    by_project = {s.project_id: (s.total, s.due) for s in stats.per_project}
    assert by_project == {question.project_id: (1, 1), tapl.id: (1, 0)}
    assert [s.title for s in stats.per_project] == ["SICP", "Types and Programming Languages"]
