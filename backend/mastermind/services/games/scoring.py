from mastermind.models import Feedback

DIGITS = '0123456789'


def score(secret: str, guess: str, alphabet: str = DIGITS) -> Feedback:
    """Score a guess against the secret code.

    Exact matches are symbols right in both value and position. For the
    remaining positions the secret and the guess are counted per symbol and
    each symbol contributes min(secret count, guess count) color matches.

    Callers must ensure both strings have the same length and only use
    symbols from ``alphabet``.
    """
    index = {symbol: i for i, symbol in enumerate(alphabet)}
    secret_freq = [0] * len(alphabet)
    guess_freq = [0] * len(alphabet)
    exact = 0

    for secret_symbol, guess_symbol in zip(secret, guess):
        if secret_symbol == guess_symbol:
            exact += 1
        else:
            secret_freq[index[secret_symbol]] += 1
            guess_freq[index[guess_symbol]] += 1

    color = sum(min(s, g) for s, g in zip(secret_freq, guess_freq))
    return Feedback(exact=exact, color=color)
