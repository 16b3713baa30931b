"""Ranking and export of participant results."""
import csv
import io
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from schemas.participant import Participant

CSV_HEADERS = ["Rank", "Name", "Student ID", "Score", "Total Points", "Time Taken (s)"]


@dataclass(slots=True)
class LeaderboardRow:
    rank: int
    participant: Participant

    @property
    def time_taken_seconds(self) -> Optional[int]:
        duration = self.participant.duration_ms
        if duration is None:
            return None
        return duration // 1000

    def to_wire(self) -> dict:
        return {
            "rank": self.rank,
            "timeTakenSeconds": self.time_taken_seconds,
            **self.participant.to_wire(),
        }


def _sort_key(p: Participant):
    duration = p.duration_ms
    return (-p.score, duration if duration is not None else math.inf)


def rank_participants(participants: Iterable[Participant], submitted_only: bool = False) -> List[LeaderboardRow]:
    """Highest score first; ties go to the faster finisher, unfinished last."""
    pool = [p for p in participants if p.submitted or not submitted_only]
    ordered = sorted(pool, key=_sort_key)
    return [LeaderboardRow(rank=i, participant=p) for i, p in enumerate(ordered, 1)]


def export_csv(participants: Iterable[Participant]) -> str:
    rows = rank_participants(participants, submitted_only=True)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        p = row.participant
        time_taken = row.time_taken_seconds
        writer.writerow([
            row.rank,
            p.name,
            p.student_id,
            p.score,
            p.total_points,
            time_taken if time_taken is not None else "N/A",
        ])
    return buffer.getvalue()
