"""
DataFrame materialization of reader results.
"""
import logging

import pandas as pd
from dbcommand.driver import DataReader

logger = logging.getLogger(__name__)

__all__ = ['column_names', 'load_frame']


def column_names(reader: DataReader) -> list[str]:
    """Names of the reader's columns in cursor order.
    """
    return [reader.get_name(i) for i in range(reader.field_count)]


def load_frame(reader: DataReader) -> pd.DataFrame:
    """Read every remaining row into a DataFrame.

    Always returns a DataFrame, never None, with columns preserved for
    empty results.
    """
    columns = column_names(reader)
    records = []
    while reader.read():
        records.append(tuple(reader.get_value(i) for i in range(len(columns))))

    if not records:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame.from_records(records, columns=columns)
    logger.debug(f'Loaded {len(df)} row(s) into DataFrame')
    return df
