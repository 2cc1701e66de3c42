## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Key-Value Cache Stores and Ticket File I/O
## Description:
## The draw-history cache only needs get/put/delete on JSON-serializable values keyed by
## string. This file provides the in-memory and single-JSON-file implementations (the
## SQLite one lives in database.py) plus saving/loading of the last generated tickets to
## `current_ticket.json`. A corrupt or missing file is logged and treated as empty.

import json  # For JSON read/write operations
import os  # For checking file existence
import logging  # For logging events and errors
from typing import Any, Dict, List, Optional  # For type annotations

from config.settings import LOG_LEVEL, LOG_FORMAT, CACHE_FILE

# Configure logging for this module
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

# Constants for file paths
CURRENT_TICKET_FILE = "current_ticket.json"  # The file storing the current ticket data


class KeyValueStore:
    """Interface the cache reconciler talks to. Values are JSON-serializable dicts."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def put(self, key: str, value: Dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """Process-local store; used by tests and as the default for one-off runs."""

    def __init__(self) -> None:
        self.data: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self.data.get(key)
        # callers get copies
        return json.loads(json.dumps(value)) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self.data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    All entries in one JSON document on disk: {key: value, ...}.

    The file is re-read on every access so several processes can share it; the last
    writer wins.
    """

    def __init__(self, path: str = CACHE_FILE) -> None:
        self.path = path

    def _load(self) -> Dict[str, Any]:
        # Check if the file exists
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            # Validate that the file contains the expected structure
            if not isinstance(data, dict):
                logging.error(f"Invalid structure in '{self.path}'. Expected a JSON object; ignoring it.")
                return {}
            return data
        except json.JSONDecodeError as e:
            logging.error(f"Error decoding JSON from '{self.path}': {e}. Treating cache as empty.")
            return {}
        except OSError as e:
            logging.error(f"Could not read '{self.path}': {e}. Treating cache as empty.")
            return {}

    def _save(self, data: Dict[str, Any]) -> None:
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self._load().get(key)

    def put(self, key: str, value: Dict[str, Any]) -> None:
        data = self._load()
        data[key] = value
        self._save(data)
        logging.debug(f"Stored cache entry '{key}' in '{self.path}'.")

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


def load_current_ticket(path: str = CURRENT_TICKET_FILE) -> Dict[str, Any]:
    """
    Loads the last generated tickets from `current_ticket.json`.

    Expected JSON structure:
    {
        "game": "multi_powerball",
        "current_ticket": [
            {"mains": [int, int, ...], "special": int | null},
            ...
        ]
    }

    Returns:
    - Dict[str, Any]: The loaded ticket data, or an empty structure when the file is
      missing or invalid.
    """
    empty = {"game": None, "current_ticket": []}
    if not os.path.exists(path):
        logging.warning(f"'{path}' not found. Returning empty ticket structure.")
        return empty

    try:
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict) or not isinstance(data.get("current_ticket"), list):
            logging.error(f"Invalid structure in '{path}'. Expected 'current_ticket' as a list.")
            return empty
        logging.info(f"Successfully loaded ticket data from '{path}'.")
        return data
    except json.JSONDecodeError as e:
        logging.error(f"Error decoding JSON from '{path}': {e}. Returning empty ticket structure.")
        return empty


def save_current_ticket(ticket: List[Dict[str, Any]], game: str, path: str = CURRENT_TICKET_FILE) -> None:
    """
    Saves generated tickets to `current_ticket.json`.

    Each entry should be a dictionary with:
        - "mains": List[int] - main numbers, digits or spots.
        - "special": int or None - the special ball, if the game has one.

    Raises:
    - ValueError: If the ticket data is not a list.
    """
    if not isinstance(ticket, list):
        logging.error("Ticket data must be a list of dictionaries.")
        raise ValueError("Invalid ticket format: Expected a list of dictionaries.")

    normalized_ticket = []
    for idx, line_dict in enumerate(ticket):
        if not isinstance(line_dict, dict) or "mains" not in line_dict:
            logging.warning(f"Skipping ticket entry at index {idx}: Missing 'mains' key.")
            continue
        try:
            mains = [int(num) for num in line_dict["mains"]]
            special = line_dict.get("special")
            special = int(special) if special is not None else None
        except (ValueError, TypeError) as e:
            logging.warning(f"Skipping ticket entry at index {idx} due to invalid number types: {e}.")
            continue
        normalized_ticket.append({"mains": mains, "special": special})

    with open(path, "w") as f:
        json.dump({"game": game, "current_ticket": normalized_ticket}, f, indent=2)
    logging.info(f"Successfully saved {len(normalized_ticket)} ticket line(s) to '{path}'.")
