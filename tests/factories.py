OWNER = 'user-1'
OTHER_OWNER = 'user-2'


def long_text(length=1000):
    base = 'Photosynthesis converts light energy into chemical energy stored in glucose. '
    return (base * (length // len(base) + 1))[:length]
