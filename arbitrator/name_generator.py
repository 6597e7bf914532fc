import random
import uuid

# Word lists for readable tournament and match identifiers
ADJECTIVES = [
    'swift', 'brave', 'golden', 'silver', 'crimson', 'azure', 'emerald', 'cosmic',
    'stellar', 'frost', 'shadow', 'mystic', 'iron', 'crystal', 'blazing', 'eternal',
    'cunning', 'clever', 'wise', 'bold', 'fearless', 'valiant', 'infinite', 'rapid',
]

NOUNS = [
    'cross', 'naught', 'grid', 'lattice', 'square', 'corner', 'diagonal', 'column',
    'phoenix', 'falcon', 'raven', 'wolf', 'tiger', 'cobra', 'kraken', 'titan',
    'knight', 'ranger', 'sentinel', 'tempest', 'cyclone', 'comet', 'nova', 'vertex',
]

MATCH_DESCRIPTORS = [
    'clash', 'duel', 'showdown', 'bout', 'contest', 'skirmish', 'rumble', 'standoff',
]


def generate_tournament_name() -> str:
    """Generate a friendly tournament name like 'crimson-phoenix-clash'"""
    adj = random.choice(ADJECTIVES)
    noun = random.choice(NOUNS)
    descriptor = random.choice(MATCH_DESCRIPTORS)
    return f"{adj}-{noun}-{descriptor}"


def generate_tournament_id() -> str:
    """Friendly name plus a short suffix so concurrent tournaments never collide."""
    return f"{generate_tournament_name()}-{generate_short_id()[:4]}"


def generate_match_name(round_num: int, match_num: int) -> str:
    """Bracket slot id like 'r2-m1-steel-falcon-duel'"""
    adj = random.choice(ADJECTIVES)
    noun = random.choice(NOUNS)
    descriptor = random.choice(MATCH_DESCRIPTORS)
    return f"r{round_num}-m{match_num}-{adj}-{noun}-{descriptor}"


def generate_short_id(prefix: str = "") -> str:
    short = uuid.uuid4().hex[:8]
    return f"{prefix}{short}" if prefix else short
