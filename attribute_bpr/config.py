"""Hyperparameter defaults and parsing of 'key=value' option strings.

    >>> parse_options("reg=0.01 num_iter=10")
    {'reg': 0.01, 'num_iter': 10}
"""

# Option name -> (type, default)
BPR_LINEAR_OPTIONS = {
    'reg':                        (float, 0.015),
    'learn_rate':                 (float, 0.05),
    'num_iter':                   (int, 30),
    'iteration_length':           (int, 5),
    'init_f_mean':                (float, 0.0),
    'init_f_stdev':               (float, 0.1),
    'fast_sampling_memory_limit': (int, 1024),
    'random_state':               (int, None),
}

BPR_LINEAR_DEFAULTS = {name: default for name, (_, default) in BPR_LINEAR_OPTIONS.items()}


def parse_options(text, options=None):
    """Turn 'reg=0.01 num_iter=10' into {'reg': 0.01, 'num_iter': 10}.

    Pairs may be separated by whitespace or commas.

    Raises:
        ValueError: On a token without '=', an unknown option name, or a
                    value that does not convert to the option's type.
    """
    options = options or BPR_LINEAR_OPTIONS
    parsed = {}
    if not text:
        return parsed

    for token in text.replace(',', ' ').split():
        if '=' not in token:
            raise ValueError(f"Expected 'name=value', got {token!r}")
        name, value = token.split('=', 1)
        if name not in options:
            raise ValueError(f"Unknown option {name!r}. Choose from {sorted(options)}")
        cast = options[name][0]
        try:
            parsed[name] = cast(value)
        except ValueError as e:
            raise ValueError(f"Invalid value for {name}: {value!r}") from e
    return parsed
