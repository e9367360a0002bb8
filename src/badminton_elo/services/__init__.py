"""Services built on the rating engine: replay, loading, recommendations and reports."""

from badminton_elo.services.loader import MatchEntry, MatchLog, RosterEntry, load_match_log
from badminton_elo.services.recommendations import (
    TierRecommendation,
    recommend_tier_changes,
    recommendations_from_replay,
)
from badminton_elo.services.replay import (
    Ledger,
    LedgerEntry,
    ReplayResult,
    SequentialReplayEngine,
    order_matches,
    replay_step,
    resolve_match,
    seed_ledger,
)
from badminton_elo.services.reporting import (
    generate_comparison_report,
    generate_standings_report,
    write_history_csv,
)

__all__ = [
    "Ledger",
    "LedgerEntry",
    "MatchEntry",
    "MatchLog",
    "ReplayResult",
    "RosterEntry",
    "SequentialReplayEngine",
    "TierRecommendation",
    "generate_comparison_report",
    "generate_standings_report",
    "load_match_log",
    "order_matches",
    "recommend_tier_changes",
    "recommendations_from_replay",
    "replay_step",
    "resolve_match",
    "seed_ledger",
    "write_history_csv",
]
