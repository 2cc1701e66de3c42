## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Fetch Logging Utility
## Description:
## Records every cache/fetch decision the reconciler makes into the SQLite 'fetch_events'
## table. Each process run is grouped by a unique run_date so a run's fetches can be
## reviewed together.

import logging
from datetime import datetime

from config.settings import DB_FILENAME
from database import initialize_database, insert_fetch_event


class FetchLogger:
    """
    Callback handed to the reconciler. Called once per outcome with the game, what
    happened, how many rows were returned and where they came from.
    """

    def __init__(self, db_path: str = DB_FILENAME):
        """
        Parameters:
        - db_path (str): SQLite file holding the 'fetch_events' table.
        """
        self.run_date = get_run_date()
        self.db_path = db_path
        initialize_database(db_path)

    def __call__(self, game_id, outcome, row_count=0, source=None):
        logging.debug(f"[FetchLogger] {game_id}: {outcome} ({row_count} rows, source={source})")
        row_id = insert_fetch_event(
            run_date=self.run_date,
            game_id=game_id,
            outcome=outcome,
            row_count=row_count,
            source=source,
            db_path=self.db_path,
        )
        if row_id is None:
            logging.warning(f"[FetchLogger] Could not record {outcome} for {game_id}.")
        return row_id


def get_run_date():
    """
    Utility to build the run_date string used for grouping events.
    """
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")
