"""
Badge rendering rule for bypass counts
"""

BADGE_COLOR = '#66f0a7'

# Browser badges fit four characters
BADGE_CAP = 999


def badge_text(count):
    """'' for no bypasses, the number up to 999, then '999+'"""
    if not count or count < 0:
        return ''
    if count > BADGE_CAP:
        return f'{BADGE_CAP}+'
    return str(count)


def badge_for(count):
    text = badge_text(count)
    return {
        'text': text,
        'color': BADGE_COLOR if text else None,
    }
