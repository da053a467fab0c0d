from proace import create_app, db
from proace.models import Match, PointsLedgerEntry, Prediction, Team, Tournament, User

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Team": Team,
        "Tournament": Tournament,
        "Match": Match,
        "Prediction": Prediction,
        "PointsLedgerEntry": PointsLedgerEntry,
    }


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
