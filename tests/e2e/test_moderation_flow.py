"""
End-to-end test for the moderation journey.

A student submits material, it stays private until an administrator
approves it, then everyone can read it and discuss it.
"""

import pytest
from httpx import AsyncClient


@pytest.mark.e2e
@pytest.mark.asyncio
class TestModerationFlow:

    async def test_submit_review_approve_discuss(
        self, client: AsyncClient, auth_headers, other_auth_headers, admin_auth_headers
    ):
        # Step 1: Alice submits a video
        submitted = await client.post("/api/content", headers=auth_headers, json={
            "kind": "video",
            "payload": {
                "title": "Electromagnetic induction",
                "file": {
                    "reference": "videos/induction.mp4",
                    "filename": "induction.mp4",
                    "mime_type": "video/mp4",
                    "size": 80_000_000,
                },
                "category": "lecture",
            },
        })
        assert submitted.status_code == 201
        content_id = submitted.json()["id"]

        # Step 2: Only Alice and the administrator can see it
        assert (await client.get(f"/api/content/{content_id}", headers=other_auth_headers)).status_code == 404
        assert (await client.get(f"/api/content/{content_id}")).status_code == 404
        assert (await client.get(f"/api/content/{content_id}", headers=auth_headers)).status_code == 200

        queue = await client.get("/api/content/pending", headers=admin_auth_headers)
        assert [c["id"] for c in queue.json()] == [content_id]

        # Step 3: Bob cannot approve it
        denied = await client.put(
            f"/api/content/{content_id}/decision",
            json={"decision": "approved"},
            headers=other_auth_headers,
        )
        assert denied.status_code == 403

        # Step 4: The administrator approves
        approved = await client.put(
            f"/api/content/{content_id}/decision",
            json={"decision": "approved"},
            headers=admin_auth_headers,
        )
        assert approved.json()["status"] == "approved"
        assert (await client.get("/api/content/pending", headers=admin_auth_headers)).json() == []

        # Step 5: Everyone sees it
        listing = await client.get("/api/content", params={"kind": "video"})
        assert [c["id"] for c in listing.json()] == [content_id]
        assert (await client.get(f"/api/content/{content_id}", headers=other_auth_headers)).status_code == 200

        # Step 6: Bob answers and Alice upvotes the answer
        answer = await client.post(
            f"/api/content/{content_id}/answers",
            json={"body": "Great explanation of Faraday's law"},
            headers=other_auth_headers,
        )
        assert answer.status_code == 201
        answer_id = answer.json()["id"]

        vote = await client.post("/api/votes", headers=auth_headers, json={
            "target_id": answer_id, "target_kind": "answer", "direction": "up",
        })
        assert vote.json()["total_votes"] == 1

        answers = await client.get(f"/api/content/{content_id}/answers", headers=auth_headers)
        assert answers.json()[0]["user_vote"] == "up"

        # Step 7: The administrator withdraws approval, the item is private again
        rejected = await client.put(
            f"/api/content/{content_id}/decision",
            json={"decision": "rejected", "reason": "Audio is unclear"},
            headers=admin_auth_headers,
        )
        assert rejected.json()["status"] == "rejected"
        assert (await client.get(f"/api/content/{content_id}", headers=other_auth_headers)).status_code == 404
        assert (await client.get(f"/api/content/{content_id}", headers=auth_headers)).json()["rejection_reason"] == (
            "Audio is unclear"
        )

        # Step 8: Alice deletes it along with its discussion
        deleted = await client.delete(f"/api/content/{content_id}", headers=auth_headers)
        assert deleted.status_code == 204
        assert (await client.get(f"/api/content/{content_id}", headers=admin_auth_headers)).status_code == 404
