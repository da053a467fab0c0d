"""
Tests for the JSON API and admin endpoints.
"""

from proace.models import LedgerReason, MatchStatus, PointsLedgerEntry, SupportTicket
from proace.services import scoring_service, tournament_service


class TestPublicApi:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_leaderboard(self, client, user_factory):
        user_factory(username="top", points=10)
        user_factory(username="bottom", points=1)

        response = client.get("/api/leaderboard?timeframe=all-time")

        assert response.status_code == 200
        assert [row["username"] for row in response.get_json()] == ["top", "bottom"]

    def test_leaderboard_bad_timeframe(self, client):
        response = client.get("/api/leaderboard?timeframe=forever")

        assert response.status_code == 400
        assert response.get_json()["error"] == "ValidationError"

    def test_tournament_leaderboard_unknown(self, client):
        response = client.get("/api/leaderboard?tournamentId=77")

        assert response.status_code == 404
        assert "77" in response.get_json()["message"]

    def test_matches_listing(self, client, match_factory):
        match = match_factory()

        response = client.get("/api/matches?status=upcoming")

        assert response.status_code == 200
        assert [m["id"] for m in response.get_json()] == [match.id]

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.get_json() == {"message": "Resource not found"}

    def test_public_profile_has_stats(self, client, user_factory):
        user_factory(username="Viewed", points=3)

        response = client.get("/api/users/viewed")

        data = response.get_json()
        assert response.status_code == 200
        assert data["username"] == "Viewed"
        assert data["stats"] == {"correctPredictions": 0, "totalMatches": 0, "accuracy": 0}
        assert "email" not in data


class TestPredictionApi:
    def test_requires_login(self, client, match_factory):
        match = match_factory()

        response = client.post(
            "/api/predictions",
            json={"matchId": match.id, "predictedMatchWinnerId": match.team1_id},
        )

        assert response.status_code == 401

    def test_submit_and_list(self, user_client, match_factory):
        client, user = user_client
        match = match_factory()

        response = client.post(
            "/api/predictions",
            json={
                "matchId": match.id,
                "predictedTossWinnerId": match.team2_id,
                "predictedMatchWinnerId": match.team1_id,
            },
        )
        assert response.status_code == 201
        assert response.get_json()["userId"] == user.id

        listing = client.get("/api/predictions").get_json()
        assert len(listing) == 1
        assert listing[0]["match"]["id"] == match.id

    def test_closed_match_conflict(self, user_client, match_factory):
        client, _ = user_client
        match = match_factory(status=MatchStatus.ONGOING)

        response = client.post(
            "/api/predictions",
            json={"matchId": match.id, "predictedMatchWinnerId": match.team1_id},
        )

        assert response.status_code == 409

    def test_body_must_be_json_object(self, user_client):
        client, _ = user_client

        response = client.post("/api/predictions", json=[1, 2])

        assert response.status_code == 400


class TestTicketApi:
    def test_ticket_conversation(self, app, user_client, admin_client):
        client, _ = user_client
        admin, _ = admin_client

        created = client.post(
            "/api/tickets", json={"subject": "Missing points", "message": "Hi"}
        )
        assert created.status_code == 201
        ticket_id = created.get_json()["id"]

        reply = admin.post(f"/api/tickets/{ticket_id}/messages", json={"message": "On it"})
        assert reply.status_code == 201
        assert reply.get_json()["isAdminReply"] is True

        detail = client.get(f"/api/tickets/{ticket_id}").get_json()
        assert detail["status"] == "in_progress"
        assert [m["message"] for m in detail["messages"]] == ["Hi", "On it"]

    def test_other_users_ticket_is_forbidden(self, app, user_client, user_factory):
        client, _ = user_client
        other = user_factory()
        other_client = app.test_client(user=other)
        ticket_id = other_client.post(
            "/api/tickets", json={"subject": "Private", "message": "Mine"}
        ).get_json()["id"]

        response = client.get(f"/api/tickets/{ticket_id}")

        assert response.status_code == 403
        assert SupportTicket.query.count() == 1


class TestAdminApi:
    def test_non_admin_forbidden(self, user_client):
        client, _ = user_client

        response = client.get("/api/admin/users")

        assert response.status_code == 403

    def test_result_scores_match(self, admin_client, user_factory, match_factory, prediction_factory):
        client, _ = admin_client
        match = match_factory(status=MatchStatus.ONGOING)
        player = user_factory()
        prediction_factory(player, match, toss_winner=match.team1, match_winner=match.team2)

        response = client.patch(
            f"/api/admin/matches/{match.id}/result",
            json={"tossWinnerId": match.team1_id, "matchWinnerId": match.team1_id},
        )

        data = response.get_json()
        assert response.status_code == 200
        assert data["match"]["status"] == MatchStatus.COMPLETED
        assert data["scoring"]["pointsAwarded"] == 1
        assert player.points == 1

        again = client.patch(
            f"/api/admin/matches/{match.id}/result",
            json={"tossWinnerId": match.team1_id, "matchWinnerId": match.team2_id},
        )
        assert again.status_code == 409

        rescored = client.post(f"/api/admin/matches/{match.id}/rescore")
        assert rescored.status_code == 200
        assert player.points == 1

    def test_points_adjustment_and_reconcile(self, admin_client, user_factory):
        client, _ = admin_client
        player = user_factory()

        response = client.put(
            f"/api/admin/users/{player.id}/points",
            json={"points": 12, "reason": "Makeup for void match"},
        )
        assert response.status_code == 200
        assert response.get_json()["points"] == 12

        entry = PointsLedgerEntry.query.filter_by(user_id=player.id).one()
        assert entry.points == 12
        assert entry.reason.startswith(LedgerReason.ADMIN_ADJUSTMENT)

        reconcile = client.post("/api/admin/points/reconcile").get_json()
        assert reconcile == {"reconciled": 0, "users": []}

    def test_create_team_and_tournament(self, admin_client):
        client, _ = admin_client

        team = client.post("/api/admin/teams", json={"name": "Nepal"})
        assert team.status_code == 201

        tournament = client.post(
            "/api/admin/tournaments",
            json={"name": "Asia Cup", "isPremium": True, "startDate": "2030-09-01"},
        )
        assert tournament.status_code == 201
        tournament_id = tournament.get_json()["id"]
        assert tournament.get_json()["isPremium"] is True

        team_id = team.get_json()["id"]
        linked = client.post(f"/api/admin/tournaments/{tournament_id}/teams/{team_id}")
        assert [t["name"] for t in linked.get_json()] == ["Nepal"]

        duplicate = client.post("/api/admin/teams", json={"name": "Nepal"})
        assert duplicate.status_code == 400

    def test_settings_roundtrip(self, client, admin_client):
        admin, _ = admin_client

        missing = client.get("/api/settings/site_title")
        assert missing.status_code == 404

        admin.put("/api/admin/settings/site_title", json={"value": "ProAce"})

        assert client.get("/api/settings/site_title").get_json()["value"] == "ProAce"

    def test_admin_cannot_delete_self(self, admin_client):
        client, admin = admin_client

        response = client.delete(f"/api/admin/users/{admin.id}")

        assert response.status_code == 400


class TestRequestValidation:
    def test_number_for_score_text(self, admin_client, match_factory):
        client, _ = admin_client
        match = match_factory()

        response = client.put(f"/api/admin/matches/{match.id}", json={"team1Score": 250})

        assert response.status_code == 400
        assert response.get_json()["error"] == "ValidationError"
        assert match.team1_score is None

    def test_number_for_team_name(self, admin_client):
        client, _ = admin_client

        response = client.post("/api/admin/teams", json={"name": 5})

        assert response.status_code == 400
        assert "Team name" in response.get_json()["message"]

    def test_number_for_ticket_subject(self, user_client):
        client, _ = user_client

        response = client.post("/api/tickets", json={"subject": 123, "message": "Hi"})

        assert response.status_code == 400
        assert SupportTicket.query.count() == 0

    def test_string_for_match_id(self, user_client, match_factory):
        client, _ = user_client
        match = match_factory()

        response = client.post(
            "/api/predictions",
            json={"matchId": str(match.id), "predictedMatchWinnerId": match.team1_id},
        )

        assert response.status_code == 400


class TestProfileApi:
    def test_current_user(self, user_client):
        client, user = user_client

        response = client.get("/api/user")

        assert response.status_code == 200
        assert response.get_json()["id"] == user.id
        assert "passwordHash" not in response.get_json()

    def test_current_user_requires_login(self, client):
        assert client.get("/api/user").status_code == 401

    def test_each_client_sees_its_own_user(self, user_client, admin_client):
        client, user = user_client
        admin, admin_user = admin_client

        assert client.get("/api/user").get_json()["id"] == user.id
        assert admin.get("/api/user").get_json()["id"] == admin_user.id
        assert client.get("/api/user").get_json()["id"] == user.id

    def test_update_profile(self, user_client):
        client, user = user_client

        response = client.patch(
            "/api/profile",
            json={"displayName": "Captain", "email": "cap@proace.app", "isAdmin": True},
        )

        assert response.status_code == 200
        assert response.get_json()["displayName"] == "Captain"
        assert user.email == "cap@proace.app"
        assert user.is_admin is False

    def test_profile_password_goes_through_change_password(self, user_client):
        client, user = user_client

        client.patch("/api/profile", json={"password": "Sneaky1234"})

        assert user.check_password("Password123")

    def test_change_password(self, user_client):
        client, user = user_client

        wrong = client.post(
            "/api/profile/change-password",
            json={"currentPassword": "nope", "newPassword": "Brand3New"},
        )
        assert wrong.status_code == 400
        assert wrong.get_json()["message"] == "Current password is incorrect"

        response = client.post(
            "/api/profile/change-password",
            json={"currentPassword": "Password123", "newPassword": "Brand3New"},
        )
        assert response.status_code == 200
        assert user.check_password("Brand3New")


class TestTournamentAnalysisApi:
    def _played_cup(
        self, tournament_factory, completed_match, user_factory, prediction_factory
    ):
        cup = tournament_factory()
        scored = completed_match(tournament=cup, toss_winner_index=1, match_winner_index=2)
        unscored = completed_match(
            tournament=cup, toss_winner_index=1, match_winner_index=1
        )
        sharp, lucky, late = user_factory(), user_factory(), user_factory()
        prediction_factory(sharp, scored, toss_winner=scored.team1, match_winner=scored.team2)
        prediction_factory(lucky, scored, toss_winner=scored.team2, match_winner=scored.team1)
        prediction_factory(late, unscored, toss_winner=unscored.team1)
        scoring_service.calculate_points(scored.id)
        return cup, scored, unscored, (sharp, lucky, late)

    def test_analysis_ranks_and_splits(
        self, client, tournament_factory, completed_match, user_factory, prediction_factory
    ):
        cup, _, _, (sharp, lucky, late) = self._played_cup(
            tournament_factory, completed_match, user_factory, prediction_factory
        )

        rows = client.get(f"/api/tournaments/{cup.id}/analysis").get_json()

        assert [(r["id"], r["rank"]) for r in rows] == [
            (sharp.id, 1),
            (late.id, 2),
            (lucky.id, 3),
        ]
        assert rows[0]["points"] == 2
        assert rows[0]["accuracy"] == 100
        assert rows[0]["correctTossPredictions"] == 1
        assert rows[0]["correctMatchPredictions"] == 1
        assert rows[2]["accuracy"] == 0

    def test_matches_analysis(
        self, client, tournament_factory, completed_match, user_factory, prediction_factory
    ):
        cup, scored, unscored, (sharp, lucky, late) = self._played_cup(
            tournament_factory, completed_match, user_factory, prediction_factory
        )

        response = client.get(f"/api/tournaments/{cup.id}/matches-analysis")

        rows = {row["id"]: row for row in response.get_json()}
        assert response.status_code == 200
        first = rows[scored.id]
        assert first["totalPredictions"] == 2
        assert first["tossStats"] == {
            "team1Predictions": 1,
            "team2Predictions": 1,
            "team1Percentage": 50,
            "team2Percentage": 50,
        }
        picks = {p["userId"]: p for p in first["userPredictions"]}
        assert picks[sharp.id]["tossCorrect"] is True
        assert picks[sharp.id]["matchCorrect"] is True
        assert picks[sharp.id]["pointsEarned"] == 2
        assert picks[lucky.id]["pointsEarned"] == 0

        [pending] = rows[unscored.id]["userPredictions"]
        assert pending["userId"] == late.id
        assert pending["pointsEarned"] == 2
        assert rows[unscored.id]["matchStats"]["team1Percentage"] == 100

    def test_matches_analysis_skips_unfinished(self, client, match_factory, user_factory, prediction_factory):
        match = match_factory()
        prediction_factory(user_factory(), match)

        rows = client.get(f"/api/tournaments/{match.tournament_id}/matches-analysis").get_json()

        assert rows == []

    def test_unknown_tournament(self, client):
        assert client.get("/api/tournaments/404/analysis").status_code == 404


class TestPublicPredictionsApi:
    def test_history_hides_hidden_toss_picks(
        self, client, user_factory, tournament_factory, match_factory, prediction_factory
    ):
        user = user_factory(username="historian")
        open_match = match_factory()
        hidden_match = match_factory(tournament=tournament_factory(hide_toss_predictions=True))
        prediction_factory(user, open_match, toss_winner=open_match.team1)
        prediction_factory(user, hidden_match, toss_winner=hidden_match.team1)

        response = client.get("/api/users/historian/predictions")

        rows = {row["matchId"]: row for row in response.get_json()}
        assert response.status_code == 200
        assert rows[open_match.id]["predictedTossWinnerId"] == open_match.team1_id
        assert rows[hidden_match.id]["predictedTossWinnerId"] is None
        assert rows[hidden_match.id]["predictedTossWinner"] is None
        assert rows[open_match.id]["isScored"] is False

    def test_unknown_user(self, client):
        assert client.get("/api/users/nobody/predictions").status_code == 404

    def test_premium_access(self, user_client, tournament_factory):
        client, user = user_client
        cup = tournament_factory(is_premium=True)

        before = client.get(f"/api/tournaments/{cup.id}/premium-access").get_json()
        tournament_service.add_premium_user(cup.id, user.id)
        after = client.get(f"/api/tournaments/{cup.id}/premium-access").get_json()

        assert before == {"isPremium": False, "hasAccess": False}
        assert after == {"isPremium": True, "hasAccess": True}
