import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import ClientSettings
from core.exceptions import QuizError
from client.api import QuizApiClient
from schemas.participant import Participant
from services.leaderboard import rank_participants


async def print_leaderboard():
    settings = ClientSettings()
    if len(sys.argv) > 1 and sys.argv[1].startswith("http"):
        settings = ClientSettings(API_URL=sys.argv[1])

    async with QuizApiClient(settings) as api:
        try:
            items = await api.get_participants()
        except QuizError as e:
            print(f"❌ Error fetching data: {e}")
            sys.exit(1)

    rows = rank_participants(Participant.model_validate(item) for item in items)

    print("\n====== LEADERBOARD ======")
    print("Rank | Name         | Score  | Time (s) | Submitted")
    print("-----|--------------|--------|----------|----------")
    for row in rows:
        p = row.participant
        if p.time_taken is not None:
            seconds = float(p.time_taken)
        elif p.duration_ms is not None:
            seconds = p.duration_ms / 1000
        else:
            seconds = 0.0
        name = (p.name or "Anonymous")[:12].ljust(12)
        score = f"{p.score}/{p.total_points or '?'}".ljust(6)
        submitted = "Yes" if p.submitted else "No"
        print(f"{str(row.rank).ljust(4)} | {name} | {score} | {seconds:<8.1f} | {submitted}")
    print("=========================\n")


if __name__ == "__main__":
    asyncio.run(print_leaderboard())
