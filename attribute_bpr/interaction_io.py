"""Readers for the plain-text interaction and item attribute files.

Interaction files hold one ``<user_id> <item_id> <rating>`` record per line,
item attribute files one ``<item_id> <attribute_id>`` pair per line. Fields
may be separated by tabs, spaces or commas; blank lines are skipped.

Both readers return DataFrames with raw (external) IDs. Mapping to dense
internal IDs happens in InteractionMatrixBuilder.
"""

import logging
import re

import pandas as pd

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r'[\t ,]+')


class InteractionFormatError(ValueError):
    """Raised when a line of an input file cannot be parsed."""


def _tokenize(line):
    return _SEPARATORS.split(line.strip())


def read_interactions(path, min_rating=None, max_rating=None):
    """Read an interaction file into a DataFrame.

    Args:
        path:       Path of the interaction file.
        min_rating: Lowest valid rating value, or None to skip the check.
        max_rating: Highest valid rating value, or None to skip the check.

    Returns:
        DataFrame with columns ['user_id', 'item_id', 'rating'].

    Raises:
        InteractionFormatError: If a non-blank line has fewer than 3 fields,
                                or a field is not a number.
    """
    with open(path, 'r') as f:
        return parse_interactions(f, min_rating=min_rating, max_rating=max_rating)


def parse_interactions(lines, min_rating=None, max_rating=None):
    """Parse interaction records from any iterable of text lines.

    Out-of-range ratings are kept, but only the first one is reported.
    """
    users, items, ratings = [], [], []
    out_of_range_warning_issued = False

    for line_no, line in enumerate(lines, 1):
        if not line.strip():
            continue

        tokens = _tokenize(line)
        if len(tokens) < 3:
            raise InteractionFormatError(
                f"Expected at least three columns in line {line_no}: {line.rstrip()!r}"
            )

        try:
            user_id = int(tokens[0])
            item_id = int(tokens[1])
            rating = float(tokens[2])
        except ValueError as e:
            raise InteractionFormatError(f"Cannot parse line {line_no}: {line.rstrip()!r}") from e

        if not out_of_range_warning_issued and _out_of_range(rating, min_rating, max_rating):
            logger.warning(
                "rating value out of range [%s, %s]: %s for user %d, item %d",
                min_rating, max_rating, rating, user_id, item_id,
            )
            out_of_range_warning_issued = True

        users.append(user_id)
        items.append(item_id)
        ratings.append(rating)

    return pd.DataFrame({'user_id': users, 'item_id': items, 'rating': ratings})


def _out_of_range(rating, min_rating, max_rating):
    if min_rating is not None and rating < min_rating:
        return True
    if max_rating is not None and rating > max_rating:
        return True
    return False


def read_item_attributes(path):
    """Read an item attribute file into a DataFrame.

    Returns:
        DataFrame with columns ['item_id', 'attribute_id'], raw IDs.
    """
    with open(path, 'r') as f:
        return parse_item_attributes(f)


def parse_item_attributes(lines):
    items, attributes = [], []

    for line_no, line in enumerate(lines, 1):
        if not line.strip():
            continue

        tokens = _tokenize(line)
        if len(tokens) < 2:
            raise InteractionFormatError(
                f"Expected at least two columns in line {line_no}: {line.rstrip()!r}"
            )
        try:
            items.append(int(tokens[0]))
            attributes.append(int(tokens[1]))
        except ValueError as e:
            raise InteractionFormatError(f"Cannot parse line {line_no}: {line.rstrip()!r}") from e

    return pd.DataFrame({'item_id': items, 'attribute_id': attributes})
