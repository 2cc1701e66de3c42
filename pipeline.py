## Modified By: Callam
## Project: Draw Analytics
## Purpose: Shared Data Pipeline
## Description:
##   - Keyed scratch store shared by the analysis steps and the console menu
##   - Scoped to one game/period; selecting another game drops everything derived
##   - Holds the historical rows, statistics, analysis and last generated tickets

import logging
from typing import Any, Dict, Optional

from config.settings import LOG_LEVEL, LOG_FORMAT
from errors import DrawDataError

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

SCOPE_KEYS = ("game_id", "period")


class DataPipeline:
    def __init__(self, game_id: Optional[str] = None, period: str = "all") -> None:
        self.data: Dict[str, Any] = {}
        if game_id is not None:
            self.select_game(game_id, period)
        logging.info("Initialized DataPipeline.")

    def select_game(self, game_id: str, period: str = "all") -> None:
        """Switch the pipeline to another game; rows and stats of the previous one are dropped."""
        if self.data.get("game_id") == game_id and self.data.get("period") == period:
            return
        self.clear_pipeline()
        self.data["game_id"] = game_id
        self.data["period"] = period
        logging.info(f"Pipeline now tracking {game_id} ({period}).")

    def add_data(self, key: str, value: Any) -> None:
        if key is None:
            raise ValueError("Pipeline key cannot be None.")
        self.data[key] = value
        logging.debug(f"Added data under key '{key}'.")

    def get_data(self, key: str, default: Any = None) -> Any:
        value = self.data.get(key, default)
        if value is None:
            logging.debug(f"No pipeline data for key '{key}'.")
        return value

    def require(self, key: str) -> Any:
        """Like get_data, but a missing entry is an error for the current game."""
        value = self.data.get(key)
        if value is None:
            raise DrawDataError(f"No '{key}' loaded for {self.data.get('game_id') or 'any game'}.")
        return value

    def invalidate(self) -> None:
        """Drop derived data but keep the selected game, forcing a refetch."""
        scope = {k: self.data[k] for k in SCOPE_KEYS if k in self.data}
        self.data = scope
        logging.info("Pipeline data invalidated.")

    def clear_pipeline(self) -> None:
        self.data.clear()
        logging.info("Pipeline cleared.")
