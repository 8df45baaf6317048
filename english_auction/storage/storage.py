import os
import json
import logging
from typing import Iterable, List

from english_auction.common.entries import Event, entry_from_dict
from english_auction.common.errors import CorruptLogError


class EventLog:
    def __init__(self, log_path: str):
        """
        Append-only JSONL event log at `log_path`.
        The file and its parent directory are created on the first append.
        The caller serializes access; the log itself holds no lock.
        """
        self.log_path = log_path

    def append(self, events: Iterable[Event]) -> int:
        """
        Write one JSONL record per event, in order, and fsync.
        Returns the number of events written.
        """
        lines = [json.dumps(event.to_dict()) + '\n' for event in events]
        if not lines:
            return 0
        parent = os.path.dirname(self.log_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.log_path, 'a', encoding='utf-8') as f:
            f.write(''.join(lines))
            f.flush()
            os.fsync(f.fileno())
        logging.debug(f"Appended {len(lines)} event(s) to {self.log_path}")
        return len(lines)

    def read_all(self) -> List[Event]:
        """
        Recover all events from the JSONL log, oldest first.
        Returns an empty list if the log does not exist yet.
        Raises CorruptLogError on the first line that cannot be decoded.
        """
        events = []
        if not os.path.exists(self.log_path):
            return events
        # Binary mode so undecodable bytes surface per line below
        with open(self.log_path, 'rb') as f:
            for line_no, raw in enumerate(f, start=1):
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    events.append(entry_from_dict(json.loads(raw.decode('utf-8'))))
                except UnicodeDecodeError as e:
                    raise CorruptLogError(self.log_path, line_no, f"invalid UTF-8: {e.reason}") from e
                except json.JSONDecodeError as e:
                    raise CorruptLogError(self.log_path, line_no, f"malformed JSON: {e.msg}") from e
                except KeyError as e:
                    raise CorruptLogError(self.log_path, line_no, f"missing field {e}") from e
                except (TypeError, ValueError) as e:
                    raise CorruptLogError(self.log_path, line_no, str(e)) from e
        return events
