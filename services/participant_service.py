import uuid
from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from models.participant import Participant
from schemas.participant import ParticipantCreate, ParticipantUpdate, Participant as ParticipantSchema
from core.exceptions import InvalidStateError
from core.logger import logger


def participant_to_dict(row: Participant) -> dict:
    participant = ParticipantSchema(
        id=row.id,
        name=row.name,
        student_id=row.student_id,
        section=row.section,
        started_at=row.started_at,
        completed_at=row.completed_at,
        time_taken=row.time_taken,
        score=row.score,
        total_points=row.total_points,
        answers=row.answers or [],
        submitted=row.submitted,
        created_at=row.created_at.isoformat() if row.created_at else None,
    )
    return participant.to_wire()


class ParticipantService:
    def __init__(self, db: AsyncSession, batch_limit: int = 25):
        self.db = db
        self.batch_limit = batch_limit

    async def list_participants(self) -> List[Participant]:
        result = await self.db.execute(select(Participant))
        return list(result.scalars().all())

    async def create_participant(self, data: ParticipantCreate) -> str:
        fields = data.model_dump(mode="json")
        participant = Participant(id=str(uuid.uuid4()), **fields)
        self.db.add(participant)
        await self.db.commit()
        logger.info("Participant registered", participant_id=participant.id, section=participant.section)
        return participant.id

    async def update_participant(self, participant_id: str, changes: ParticipantUpdate) -> bool:
        values = changes.model_dump(mode="json", exclude_unset=True)
        participant = await self.db.get(Participant, participant_id)
        if not participant:
            return False
        if participant.submitted:
            # A submitted result is final; only the admin bulk-clear removes it
            logger.warning("Rejected update of submitted participant", participant_id=participant_id)
            raise InvalidStateError("Participant has already submitted")

        for key, value in values.items():
            setattr(participant, key, value)
        await self.db.commit()
        logger.info("Participant updated", participant_id=participant_id, fields=list(values.keys()))
        return True

    async def delete_all(self) -> int:
        result = await self.db.execute(select(Participant.id))
        ids = list(result.scalars().all())

        for i in range(0, len(ids), self.batch_limit):
            chunk = ids[i:i + self.batch_limit]
            await self.db.execute(delete(Participant).where(Participant.id.in_(chunk)))
        await self.db.commit()
        logger.warning("All participants deleted", deleted=len(ids))
        return len(ids)
