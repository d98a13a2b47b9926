from __future__ import annotations

import time
from typing import Any, Dict, List, Optional

import pytest

from domain.enums import Region, RequestType
from domain.interfaces import IUpstreamClient
from infrastructure.repositories import AggregateRepository, Database, MatchStore, ScrapeStateRepository

DAY_MS = 86_400_000


def now_ms() -> int:
    return int(time.time() * 1000)


def make_participant(
    index: int,
    puuid: str,
    *,
    champion: str = "Ahri",
    win: Optional[bool] = None,
    remake: bool = False,
    items: Optional[List[int]] = None,
) -> Dict[str, Any]:
    team_id = 100 if index <= 5 else 200
    return {
        "participantId": index,
        "puuid": puuid,
        "teamId": team_id,
        "championName": champion,
        "win": (team_id == 100) if win is None else win,
        "gameEndedInEarlySurrender": remake,
        "kills": 5 + index % 3,
        "deaths": 4 + index % 2,
        "assists": 12 + index,
        "totalDamageDealtToChampions": 20_000 + index * 1000,
        "totalDamageDealt": 60_000 + index * 2000,
        "totalHealsOnTeammates": 1500,
        "totalDamageShieldedOnTeammates": 800,
        "timeCCingOthers": 30 + index,
        "summoner1Id": 32,
        "summoner2Id": 4,
        **{f"item{slot}": item for slot, item in enumerate(items or [3020, 6655, 3089, 3135, 0, 0])},
        "perks": {
            "statPerks": {"offense": 5008, "flex": 5008, "defense": 5001},
            "styles": [
                {"style": 8200, "selections": [{"perk": 8229}, {"perk": 8226}, {"perk": 8210}, {"perk": 8237}]},
                {"style": 8300, "selections": [{"perk": 8345}, {"perk": 8347}]},
            ],
        },
    }


def make_match(
    match_id: str,
    *,
    puuids: Optional[List[str]] = None,
    game_creation: Optional[int] = None,
    version: str = "14.23.612.1234",
    duration: int = 1200,
    remake: bool = False,
    champions: Optional[List[str]] = None,
) -> Dict[str, Any]:
    puuids = puuids or [f"{match_id}-p{i}" for i in range(1, 11)]
    champions = champions or ["Ahri", "Lux", "Jinx", "Sona", "Garen", "Ahri", "Lux", "Jinx", "Sona", "Garen"]
    return {
        "metadata": {"matchId": match_id, "participants": list(puuids)},
        "info": {
            "gameCreation": game_creation if game_creation is not None else now_ms() - 3_600_000,
            "gameDuration": duration,
            "gameEndTimestamp": 1,
            "gameVersion": version,
            "queueId": 450,
            "platformId": match_id.split("_")[0],
            "participants": [
                make_participant(i, puuid, champion=champions[(i - 1) % len(champions)], remake=remake)
                for i, puuid in enumerate(puuids, start=1)
            ],
        },
    }


def make_timeline(participant_count: int = 10) -> Dict[str, Any]:
    """Two frames: starter purchases and skill-ups, then a teamfight."""
    events: List[Dict[str, Any]] = []
    for pid in range(1, participant_count + 1):
        events.append({"type": "ITEM_PURCHASED", "participantId": pid, "itemId": 1055, "timestamp": 1000})
        events.append({"type": "ITEM_PURCHASED", "participantId": pid, "itemId": 2003, "timestamp": 1500})
        for n, slot in enumerate([1, 3, 2, 1, 1, 4, 1, 3, 1, 3, 4, 3, 3, 2, 2, 4, 2, 2]):
            events.append({
                "type": "SKILL_LEVEL_UP", "participantId": pid, "skillSlot": slot,
                "levelUpType": "NORMAL", "timestamp": 2000 + n * 60_000,
            })
        for n, item in enumerate([3020, 6655, 3089]):
            events.append({"type": "ITEM_PURCHASED", "participantId": pid, "itemId": item,
                           "timestamp": 300_000 + n * 200_000})
    frames = [
        {
            "timestamp": 0,
            "events": events,
            "participantFrames": {str(i): {"currentGold": 500, "level": 3} for i in range(1, participant_count + 1)},
        },
        {
            "timestamp": 600_000,
            "events": [
                {"type": "CHAMPION_KILL", "killerId": 1, "victimId": 6, "assistingParticipantIds": [2, 3],
                 "position": {"x": 7000, "y": 7000}, "timestamp": 600_000},
                {"type": "CHAMPION_KILL", "killerId": 2, "victimId": 7, "assistingParticipantIds": [1],
                 "position": {"x": 7200, "y": 7100}, "timestamp": 601_500},
                {"type": "CHAMPION_KILL", "killerId": 8, "victimId": 3, "assistingParticipantIds": [],
                 "position": {"x": 7100, "y": 6900}, "timestamp": 602_000},
            ],
            "participantFrames": {str(i): {"currentGold": 1200, "level": 10} for i in range(1, participant_count + 1)},
        },
    ]
    return {"metadata": {}, "info": {"frames": frames}}


class FakeUpstream(IUpstreamClient):
    """In-memory match-v5 stand-in that counts calls and can be told to fail."""

    def __init__(self) -> None:
        self.ids_by_puuid: Dict[str, List[str]] = {}
        self.matches: Dict[str, Dict[str, Any]] = {}
        self.timelines: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[tuple, BaseException] = {}
        self.calls: List[tuple] = []
        self.delay: float = 0.0

    def add_match(self, payload: Dict[str, Any], timeline: Optional[Dict[str, Any]] = None) -> None:
        match_id = payload["metadata"]["matchId"]
        self.matches[match_id] = payload
        if timeline is not None:
            self.timelines[match_id] = timeline

    def fail(self, op: str, key: str, exc: BaseException) -> None:
        self.failures[(op, key)] = exc

    def call_count(self, op: Optional[str] = None) -> int:
        return sum(1 for c in self.calls if op is None or c[0] == op)

    async def _maybe_fail(self, op: str, key: str) -> None:
        self.calls.append((op, key))
        if self.delay:
            import asyncio
            await asyncio.sleep(self.delay)
        exc = self.failures.get((op, key))
        if exc is not None:
            raise exc

    async def get_match_ids_by_puuid(
        self, region: Region, puuid: str, *, start_time=None, count=20, start=0, queue=None,
        budget_ms=None, request_type=RequestType.BATCH,
    ) -> List[str]:
        await self._maybe_fail("ids", puuid)
        return list(self.ids_by_puuid.get(puuid, []))[:count]

    async def get_match(self, region: Region, match_id: str, *, budget_ms=None, request_type=RequestType.BATCH):
        await self._maybe_fail("match", match_id)
        return self.matches.get(match_id)

    async def get_timeline(self, region: Region, match_id: str, *, budget_ms=None, request_type=RequestType.BATCH):
        await self._maybe_fail("timeline", match_id)
        return self.timelines.get(match_id)


@pytest.fixture()
def db(tmp_path) -> Database:
    return Database(tmp_path / "pipeline.sqlite")


@pytest.fixture()
def store(db) -> MatchStore:
    return MatchStore(db)


@pytest.fixture()
def state_repo(db) -> ScrapeStateRepository:
    return ScrapeStateRepository(db)


@pytest.fixture()
def aggregates(db) -> AggregateRepository:
    return AggregateRepository(db)


@pytest.fixture()
def upstream() -> FakeUpstream:
    return FakeUpstream()
