import random

EMOJIS = ('🍞', '🥐', '🥖', '🥯', '🧁', '🍩', '🥨', '🍪', '🦘', '⚛️')
WORDS = (
    'Quokka', 'Baker', 'Dough', 'Kneader', 'Crumb', 'Loaf',
    'Yeast', 'Pretzel', 'Bagel', 'Croissant', 'Quantum', 'Sourdough',
)


def generate_nickname(rng=random) -> str:
    """Anonymous display name such as ``'🥐 Quokka #4821'``.

    Emoji, word and number are drawn independently; a new one is made for
    every submission.
    """
    emoji = rng.choice(EMOJIS)
    word = rng.choice(WORDS)
    number = rng.randint(1000, 9999)
    return f"{emoji} {word} #{number}"
