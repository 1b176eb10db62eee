import random
import re
from typing import Dict, List

DEFAULT_PROMPTS = [
    {'left': 'Cold', 'right': 'Hot'},
    {'left': 'Boring', 'right': 'Exciting'},
    {'left': 'Weak', 'right': 'Strong'},
    {'left': 'Gross', 'right': 'Tasty'},
    {'left': 'Chaotic', 'right': 'Orderly'},
    {'left': 'Overrated', 'right': 'Underrated'},
]

# Checked in order; the first one present in a line wins
DELIMITERS = ('|', ',', '->', '—')

MAX_LABEL_LENGTH = 50
MAX_PROMPTS = 250


def parse_prompt_line(line: str):
    for delim in DELIMITERS:
        if delim in line:
            # "a | b | c" keeps only the first two fields
            parts = line.split(delim)
            left, right = parts[0].strip(), parts[1].strip()
            if left and right and len(left) <= MAX_LABEL_LENGTH and len(right) <= MAX_LABEL_LENGTH:
                return {'left': left, 'right': right}
            return None
    return None


def parse_prompt_lines(text) -> List[Dict[str, str]]:
    """Parse one ``left | right`` pair per line, dropping anything malformed."""
    prompts = []
    for raw in re.split(r'\r?\n', str(text or '')):
        line = raw.strip()
        if not line:
            continue
        pair = parse_prompt_line(line)
        if pair:
            prompts.append(pair)
        if len(prompts) >= MAX_PROMPTS:
            break
    return prompts


def pick_spectrum(pool, rng=random) -> Dict[str, str]:
    choices = pool if pool else DEFAULT_PROMPTS
    return dict(rng.choice(choices))
