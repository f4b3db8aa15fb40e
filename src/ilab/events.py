"""Domain events published for notification and WebSocket fan-out.

The engine only calls ``EventPublisher.notify(event)``. Delivery to
browsers happens elsewhere: a bridge subscribes to ``pubsub:*`` and routes
each message to user, team or hackathon rooms.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

XP_AWARDED = "xp_awarded"
LEVEL_UP = "level_up"
BADGE_EARNED = "badge_earned"
STREAK_MILESTONE = "streak_milestone"
SUBMISSION_SCORED = "submission_scored"
LEADERBOARD_UPDATE = "leaderboard_update"
TEAM_MEMBER_JOINED = "team_member_joined"
WINNERS_ANNOUNCED = "winners_announced"


@dataclass
class DomainEvent:
    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    user_id: str | None = None
    hackathon_id: str | None = None
    team_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def channel(self) -> str:
        return f"pubsub:{self.type}"

    def to_json(self) -> str:
        return json.dumps(
            {
                "type": self.type,
                "user_id": self.user_id,
                "hackathon_id": self.hackathon_id,
                "team_id": self.team_id,
                "timestamp": self.timestamp.isoformat(),
                "data": self.payload,
            },
            default=str,
        )


class EventPublisher:
    """Publishes domain events over Redis pub/sub. No-op without a client."""

    def __init__(self, redis: object | None) -> None:
        self.redis = redis

    async def notify(self, event: DomainEvent) -> None:
        if self.redis is None:
            return
        try:
            await self.redis.publish(event.channel, event.to_json())  # type: ignore[union-attr]
        except Exception:
            logger.warning("Failed to publish %s event", event.type, exc_info=True)
