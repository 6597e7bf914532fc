SPEED_DELAYS_MS = {
    'slow': 2000,
    'normal': 1000,
    'fast': 200,
}


def speed_delay(speed: str) -> int:
    """UI playback delay between moves; the engine itself never sleeps."""
    return SPEED_DELAYS_MS.get(speed, SPEED_DELAYS_MS['normal'])


def next_game_index(current_index: int, total_games: int) -> int:
    """Index of the next archived game, wrapping around. 0 for an empty archive."""
    if total_games <= 0:
        return 0
    return (current_index + 1) % total_games
