"""Tests for the Nyuchi REST API."""
import uuid

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete

from nyuchi.api.app import create_app
from nyuchi.core.config.settings import NyuchiConfig
from nyuchi.core.models import SOURCE_MODELS, SubmissionType

from conftest import ADMIN_HEADERS, MODERATOR_HEADERS, REVIEWER_HEADERS, USER_HEADERS


async def source_status(db, submission) -> str:
    model = SOURCE_MODELS[SubmissionType(submission.submission_type)]
    async with db.session() as session:
        record = await session.get(model, submission.reference_id)
        return record.status


async def move(client, submission_id, status, headers=MODERATOR_HEADERS, **extra):
    return await client.patch(
        f"/api/pipeline/submissions/{submission_id}",
        json={"status": status, **extra},
        headers=headers,
    )


@pytest.mark.asyncio
async def test_health_check(client):
    """Test the health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "nyuchi-pipeline"


@pytest.mark.asyncio
async def test_missing_identity_is_unauthenticated(client):
    response = await client.get("/api/pipeline/submissions")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = await client.get("/api/ubuntu/my-score")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_submissions_scoped_by_capability(client, make_submission):
    await make_submission(SubmissionType.CONTENT)
    await make_submission(SubmissionType.DIRECTORY_LISTING)
    await make_submission(SubmissionType.EXPERT_APPLICATION)

    response = await client.get("/api/pipeline/submissions", headers=MODERATOR_HEADERS)
    assert response.status_code == 200
    data = response.json()
    assert set(data["pipelines"]) == {"content", "directory_listing"}
    assert {s["submission_type"] for s in data["submissions"]} == {"content", "directory_listing"}

    response = await client.get("/api/pipeline/submissions", headers=ADMIN_HEADERS)
    assert len(response.json()["submissions"]) == 3

    response = await client.get("/api/pipeline/submissions", headers=USER_HEADERS)
    assert response.json() == {"submissions": [], "pipelines": []}


@pytest.mark.asyncio
async def test_list_by_type(client, make_submission):
    for i in range(3):
        await make_submission(SubmissionType.EXPERT_APPLICATION, title=f"Expert {i}")

    response = await client.get(
        "/api/pipeline/submissions/expert_application",
        params={"limit": 2},
        headers=REVIEWER_HEADERS,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert len(data["submissions"]) == 2
    assert data["limit"] == 2
    assert data["offset"] == 0

    response = await client.get(
        "/api/pipeline/submissions/expert_application",
        params={"status": "in_review"},
        headers=REVIEWER_HEADERS,
    )
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_list_by_type_errors(client):
    response = await client.get("/api/pipeline/submissions/content", headers=REVIEWER_HEADERS)
    assert response.status_code == 403
    assert response.json()["required_capabilities"] == ["admin", "moderator"]

    response = await client.get("/api/pipeline/submissions/podcast", headers=MODERATOR_HEADERS)
    assert response.status_code == 403
    assert response.json()["required_capabilities"] == ["admin"]

    response = await client.get(
        "/api/pipeline/submissions/content",
        params={"status": "done"},
        headers=MODERATOR_HEADERS,
    )
    assert response.status_code == 400
    assert "allowed_statuses" in response.json()


@pytest.mark.asyncio
async def test_review_scenario_for_content(client, db, make_submission):
    """submitted -> in_review -> approved -> published for a content item."""
    submission = await make_submission(SubmissionType.CONTENT)

    response = await move(client, submission.id, "in_review")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["submission"]["status"] == "in_review"
    assert data["submission"]["assigned_to"] == "mod-1"
    assert data["sync_pending"] is False
    assert await source_status(db, submission) == "submitted"

    response = await move(client, submission.id, "approved", reviewer_notes="Great read")
    data = response.json()
    assert data["submission"]["status"] == "approved"
    assert data["submission"]["reviewed_at"] is not None
    assert data["submission"]["reviewer_notes"] == "Great read"
    assert data["sync_pending"] is False
    assert await source_status(db, submission) == "approved"

    response = await move(client, submission.id, "published")
    data = response.json()
    assert data["submission"]["published_at"] is not None
    assert data["submission"]["reviewer_notes"] == "Great read"
    assert data["award"] is None
    assert await source_status(db, submission) == "published"


@pytest.mark.asyncio
async def test_expert_publish_writes_approved_on_source(client, db, make_submission):
    submission = await make_submission(SubmissionType.EXPERT_APPLICATION)

    response = await move(client, submission.id, "published", headers=REVIEWER_HEADERS)

    assert response.status_code == 200
    assert await source_status(db, submission) == "approved"


@pytest.mark.asyncio
async def test_update_rejects_near_miss_status(client, make_submission):
    submission = await make_submission(SubmissionType.CONTENT)

    for bad in ("approved ", "done", "APPROVED"):
        response = await move(client, submission.id, bad)
        assert response.status_code == 400
        assert response.json()["allowed_statuses"] == [
            "submitted", "in_review", "needs_changes", "approved", "rejected", "published",
        ]

    response = await client.get("/api/pipeline/my-submissions", headers={"X-User-Id": "author-1"})
    assert response.json()["submissions"][0]["status"] == "submitted"


@pytest.mark.asyncio
async def test_malformed_request_is_invalid_input(client, make_submission):
    submission = await make_submission(SubmissionType.CONTENT)

    response = await client.patch(
        f"/api/pipeline/submissions/{submission.id}",
        json={"reviewer_notes": "no status here"},
        headers=MODERATOR_HEADERS,
    )
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert "detail" not in body
    assert [f["field"] for f in body["fields"]] == ["body.status"]

    response = await client.get(
        "/api/pipeline/submissions/content", params={"limit": 0}, headers=MODERATOR_HEADERS
    )
    assert response.status_code == 400
    assert response.json()["fields"][0]["field"] == "query.limit"


@pytest.mark.asyncio
async def test_update_id_errors(client):
    response = await move(client, "not-a-uuid", "approved")
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid ID format"

    response = await move(client, str(uuid.uuid4()), "approved")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_forbidden_for_other_pipeline(client, make_submission):
    submission = await make_submission(SubmissionType.BUSINESS_APPLICATION)

    response = await move(client, submission.id, "approved", headers=MODERATOR_HEADERS)
    assert response.status_code == 403

    response = await client.get(
        "/api/pipeline/submissions/business_application", headers=REVIEWER_HEADERS
    )
    assert response.json()["submissions"][0]["status"] == "submitted"


@pytest.mark.asyncio
async def test_stale_update_conflicts(client, make_submission):
    submission = await make_submission(SubmissionType.CONTENT)

    first = await move(client, submission.id, "in_review")
    seen = first.json()["submission"]["updated_at"]

    response = await move(client, submission.id, "approved", expected_updated_at=seen)
    assert response.status_code == 200

    response = await move(client, submission.id, "rejected", expected_updated_at=seen)
    assert response.status_code == 409
    assert response.json()["updated_at"]


@pytest.mark.asyncio
async def test_failed_source_sync_keeps_transition(client, db, session, make_submission):
    submission = await make_submission(SubmissionType.DIRECTORY_LISTING)
    model = SOURCE_MODELS[SubmissionType.DIRECTORY_LISTING]
    await session.execute(delete(model).where(model.id == submission.reference_id))
    await session.commit()

    response = await move(client, submission.id, "approved")

    assert response.status_code == 200
    data = response.json()
    assert data["submission"]["status"] == "approved"
    assert data["sync_pending"] is True


@pytest.mark.asyncio
async def test_award_is_idempotent(client, make_submission):
    submission = await make_submission(SubmissionType.CONTENT, submitter_id="writer-1")
    await move(client, submission.id, "approved")

    url = f"/api/pipeline/submissions/{submission.id}/award"
    response = await client.post(url, json={}, headers=MODERATOR_HEADERS)
    assert response.status_code == 200
    first = response.json()
    assert first["created"] is True
    assert first["contribution"]["user_id"] == "writer-1"
    assert first["contribution"]["contribution_type"] == "content_published"
    assert first["contribution"]["points"] == 100
    assert first["contribution"]["metadata"]["submission_id"] == submission.id

    response = await client.post(url, json={}, headers=MODERATOR_HEADERS)
    second = response.json()
    assert second["created"] is False
    assert second["contribution"]["id"] == first["contribution"]["id"]

    response = await client.get("/api/ubuntu/my-score", headers={"X-User-Id": "writer-1"})
    assert response.json()["total_points"] == 100


@pytest.mark.asyncio
async def test_award_rules(client, make_submission):
    submission = await make_submission(SubmissionType.CONTENT)
    url = f"/api/pipeline/submissions/{submission.id}/award"

    response = await client.post(url, json={}, headers=MODERATOR_HEADERS)
    assert response.status_code == 400

    await move(client, submission.id, "published")

    response = await client.post(url, json={}, headers=REVIEWER_HEADERS)
    assert response.status_code == 403

    response = await client.post(url, json={"points": 1000}, headers=MODERATOR_HEADERS)
    assert response.status_code == 403

    response = await client.post(url, json={"points": 1000}, headers=ADMIN_HEADERS)
    assert response.status_code == 200
    assert response.json()["contribution"]["points"] == 1000


@pytest.mark.asyncio
async def test_auto_award_on_publish(db, make_submission):
    config = NyuchiConfig(db_path=":memory:", auto_award_on_publish=True)
    app = create_app(config)
    submission = await make_submission(SubmissionType.TRAVEL_BUSINESS, submitter_id="lodge-1")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await move(client, submission.id, "published", headers=REVIEWER_HEADERS)
        award = response.json()["award"]
        assert award["contribution_type"] == "listing_created"
        assert award["points"] == 50

        # Publishing again does not pay twice
        response = await move(client, submission.id, "published", headers=REVIEWER_HEADERS)
        assert response.json()["award"]["id"] == award["id"]

        response = await client.get("/api/ubuntu/my-score", headers={"X-User-Id": "lodge-1"})
        assert response.json()["total_points"] == 50


@pytest.mark.asyncio
async def test_stats(client, make_submission):
    submission = await make_submission(SubmissionType.CONTENT)
    await make_submission(SubmissionType.CONTENT)
    await move(client, submission.id, "approved")

    response = await client.get("/api/pipeline/stats", headers=USER_HEADERS)
    assert response.status_code == 403

    response = await client.get("/api/pipeline/stats", headers=MODERATOR_HEADERS)
    assert response.status_code == 200
    data = response.json()
    assert set(data["stats"]) == {"content", "directory_listing"}
    assert data["stats"]["content"]["approved"] == 1
    assert data["stats"]["content"]["submitted"] == 1
    assert data["stats"]["directory_listing"]["submitted"] == 0


@pytest.mark.asyncio
async def test_my_submissions(client, make_submission):
    await make_submission(SubmissionType.CONTENT, submitter_id="user-1")
    await make_submission(SubmissionType.EXPERT_APPLICATION, submitter_id="user-1")
    await make_submission(SubmissionType.CONTENT, submitter_id="someone-else")

    response = await client.get("/api/pipeline/my-submissions", headers=USER_HEADERS)
    assert response.status_code == 200
    submissions = response.json()["submissions"]
    assert len(submissions) == 2
    assert {s["submitter_id"] for s in submissions} == {"user-1"}


@pytest.mark.asyncio
async def test_record_contribution_levels_up(client):
    """A 500 point adjustment moves a fresh user from Newcomer to Contributor."""
    response = await client.post(
        "/api/ubuntu/record",
        json={"user_id": "new-1", "contribution_type": "community_help", "points": 500},
        headers=USER_HEADERS,
    )
    assert response.status_code == 403

    await client.post(
        "/api/ubuntu/record",
        json={"user_id": "veteran-1", "contribution_type": "collaboration", "points": 400},
        headers=ADMIN_HEADERS,
    )

    response = await client.post(
        "/api/ubuntu/record",
        json={"user_id": "new-1", "contribution_type": "community_help", "points": 500},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["contribution"]["points"] == 500
    assert data["level_change"] == {
        "leveled_up": True,
        "previous_level": "Newcomer",
        "new_level": "Contributor",
    }

    response = await client.get("/api/ubuntu/my-score", headers={"X-User-Id": "new-1"})
    score = response.json()
    assert score["level"] == "Contributor"
    assert score["total_points"] == 500
    assert score["streak_days"] == 1
    assert score["next_level"] == "Community Leader"
    assert score["points_to_next_level"] == 1500
    assert len(score["recent_contributions"]) == 1

    response = await client.get("/api/ubuntu/leaderboard")
    board = response.json()["data"]
    assert [e["user_id"] for e in board] == ["new-1", "veteran-1"]
    assert [e["rank"] for e in board] == [1, 2]
    assert board[0]["level"] == "Contributor"


@pytest.mark.asyncio
async def test_record_validation(client):
    response = await client.post(
        "/api/ubuntu/record",
        json={"user_id": "u-1", "contribution_type": "bribery"},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/ubuntu/record",
        json={"user_id": "u-1", "contribution_type": "collaboration", "points": -5},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/ubuntu/record",
        json={"user_id": "u-1", "contribution_type": "collaboration"},
        headers=ADMIN_HEADERS,
    )
    assert response.json()["contribution"]["points"] == 150


@pytest.mark.asyncio
async def test_my_contributions_pagination(client):
    for _ in range(3):
        await client.post(
            "/api/ubuntu/record",
            json={"user_id": "user-1", "contribution_type": "community_help"},
            headers=ADMIN_HEADERS,
        )

    response = await client.get(
        "/api/ubuntu/my-contributions", params={"page": 2, "limit": 2}, headers=USER_HEADERS
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data["data"]) == 1
    assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}

    response = await client.get(
        "/api/ubuntu/my-contributions", params={"limit": 500}, headers=USER_HEADERS
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_leaderboard_is_public_and_limited(client):
    for user_id, points in (("a", 10), ("b", 30), ("c", 20)):
        await client.post(
            "/api/ubuntu/record",
            json={"user_id": user_id, "contribution_type": "community_help", "points": points},
            headers=ADMIN_HEADERS,
        )

    response = await client.get("/api/ubuntu/leaderboard", params={"limit": 2})
    assert response.status_code == 200
    assert [e["user_id"] for e in response.json()["data"]] == ["b", "c"]


@pytest.mark.asyncio
async def test_points_guide(client):
    response = await client.get("/api/ubuntu/points-guide")
    assert response.status_code == 200
    guide = response.json()

    assert guide["points"]["content_published"] == 100
    assert guide["principle"] == "I am because we are"
    assert guide["levels"][0] == {
        "level": "Newcomer",
        "min_points": 0,
        "max_points": 499,
        "description": guide["levels"][0]["description"],
    }
    assert guide["levels"][-1]["level"] == "Ubuntu Champion"
    assert guide["levels"][-1]["max_points"] is None
