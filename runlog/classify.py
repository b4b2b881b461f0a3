def is_running(sport_type: str | None) -> bool:
    allowed = {
        "Run", "TrailRun", "VirtualRun",
    }
    return sport_type in allowed
