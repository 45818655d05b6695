"""Built-in sample payloads served when the upstream tournament API is unusable."""

from __future__ import annotations

from typing import Any

from tournament_finder.schemas.tournament import TournamentConfig, TournamentRecord

SAMPLE_TOURNAMENTS: tuple[dict[str, Any], ...] = (
    {
        "id": 5,
        "event_id": 316169,
        "event_name": "Daily Turbo 3K★",
        "event_link": "https://pokerguild.jp/tourneys/316169",
        "start_date": "2025-09-03",
        "start_time": "13:00",
        "late_time": "16:00",
        "entry_fee": 3000,
        "prizes_original": (
            "Daily Turbo 3K★\nステータス | 待機中\n1位: 22,000 Coin\n"
            "2位: 11,000 Coin\n3位: 5,000 Coin\n4位: Tournament Ticket"
        ),
        "reward_categories": '[\n  "コイン",\n  "チケット"\n]',
        "reward_summary": (
            "1st: 22000コイン, 2nd: 11000コイン, 3rd: 5000コイン, 4th: Tournament Ticket"
        ),
        "shop_id": 166,
        "shop_name": "GoodGame Poker Live SHIBUYA",
        "shop_link": "https://pokerguild.jp/venues/166",
        "official_page": "https://ggpokerlive.jp/",
        "prefecture": "東京都",
        "city_ward": "渋谷区",
        "created_at": "2025-08-29T19:20:40",
        "updated_at": "2025-08-29T19:20:40",
    },
    # Older upstream builds returned the start as one timestamp and a comma
    # separated category string.
    {
        "id": 1,
        "event_id": 101,
        "event_name": "Weekly No-Limit Hold'em",
        "event_link": "https://pokerstarscafe.jp/tournaments/101",
        "shop_id": 1,
        "shop_name": "PokerStars Cafe",
        "official_page": "https://pokerstarscafe.jp/tournaments",
        "start_time": "2024-07-10 19:00:00",
        "entry_fee": 5000,
        "prizes_original": "1st: 30000 JPY + Ticket\n2nd: 15000 JPY\n3rd: 10000 JPY + Ticket",
        "prefecture": "東京都",
        "city_ward": "港区",
        "reward_categories": "Cash,Tickets",
        "reward_summary": "1st: 30000 JPY + Ticket, 2nd: 15000 JPY, 3rd: 10000 JPY + Ticket",
        "created_at": "2025-08-28T13:27:28",
        "updated_at": "2025-08-28T13:29:15",
    },
    {
        "id": 2,
        "event_id": 102,
        "event_name": "Friday Night Tournament",
        "event_link": "https://pokerstarscafe.jp/tournaments/102",
        "shop_id": 1,
        "shop_name": "PokerStars Cafe",
        "official_page": "https://pokerstarscafe.jp/tournaments",
        "start_time": "2024-07-12 20:00:00",
        "entry_fee": 8000,
        "prizes_original": "1st: 50000 JPY\n2nd: 25000 JPY\n3rd: 15000 JPY",
        "prefecture": "東京都",
        "city_ward": "港区",
        "reward_categories": "Cash",
        "reward_summary": "1st: 50000 JPY, 2nd: 25000 JPY, 3rd: 15000 JPY",
        "created_at": "2025-08-28T13:27:28",
        "updated_at": "2025-08-28T13:29:15",
    },
)

SAMPLE_CONFIG: dict[str, list[str]] = {
    "all_city_ward": ["港区", "渋谷区"],
    "all_prefecture": ["東京都"],
    "all_shop_name": [
        "BARRLE IKEBUKURO",
        "GoodGame Poker Live SHIBUYA",
        "PokerStars Cafe",
        "ResPo",
        "UNIVERSE",
        "ガットショット 上野池之端店",
    ],
}


def sample_tournaments() -> list[TournamentRecord]:
    """Return freshly validated copies of the sample tournament list."""

    return [TournamentRecord.model_validate(item) for item in SAMPLE_TOURNAMENTS]


def sample_config() -> TournamentConfig:
    """Return a fresh copy of the sample facet configuration."""

    return TournamentConfig.model_validate(SAMPLE_CONFIG)


__all__ = ["SAMPLE_CONFIG", "SAMPLE_TOURNAMENTS", "sample_config", "sample_tournaments"]
