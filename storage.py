import json
import os
from pathlib import Path
from typing import Iterable, List, Tuple

import boto3
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError

from logging_setup import get_logger
from models import PurgeNotConfirmed, StorageError, TransactionRecord

# Load environment variables
load_dotenv()

S3_BUCKET = os.environ.get("S3_BUCKET")
AWS_REGION = os.environ.get("AWS_REGION", "us-east-1")
DATA_DIR = os.environ.get("FINANCE_DATA_DIR", "yoy_finance_data")
STORE_KEY = os.environ.get("YOY_FINANCE_STORE_KEY", "yoy_finance_v2.json")
DATA_FOLDER = "store"

logger = get_logger("yoy_finance.storage")

_RECORDS = TypeAdapter(List[TransactionRecord])


def get_s3_client():
    return boto3.client("s3", region_name=AWS_REGION)


def save_file(file_name: str, data: bytes, folder: str = DATA_FOLDER) -> None:
    """
    Writes bytes under ``folder/file_name`` on S3 or local disk.
    """
    if S3_BUCKET:
        s3 = get_s3_client()
        key = f"{folder}/{file_name}"
        try:
            s3.put_object(Bucket=S3_BUCKET, Key=key, Body=data)
        except Exception as e:
            raise StorageError(f"S3 upload of {key} failed: {e}") from e
    else:
        local_path = Path(DATA_DIR) / folder / file_name
        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            # Replace atomically.
            tmp_path = local_path.with_suffix(local_path.suffix + ".tmp")
            tmp_path.write_bytes(data)
            tmp_path.replace(local_path)
        except OSError as e:
            raise StorageError(f"Writing {local_path} failed: {e}") from e


def load_file(file_name: str, folder: str = DATA_FOLDER) -> bytes | None:
    """
    Reads ``folder/file_name`` from S3 or local disk; ``None`` when absent.
    """
    if S3_BUCKET:
        s3 = get_s3_client()
        key = f"{folder}/{file_name}"
        try:
            obj = s3.get_object(Bucket=S3_BUCKET, Key=key)
            return obj["Body"].read()
        except s3.exceptions.NoSuchKey:
            return None
        except Exception:
            logger.exception("S3 download of %s failed", key)
            return None
    else:
        local_path = Path(DATA_DIR) / folder / file_name
        if not local_path.exists():
            return None
        try:
            return local_path.read_bytes()
        except OSError:
            logger.exception("Reading %s failed", local_path)
            return None


class TransactionStore:
    """Ordered record set with write-through persistence.

    Every mutation serializes the whole set to one durable key before
    returning. Records are kept in insertion order.
    """

    def __init__(self, file_name: str | None = None, folder: str = DATA_FOLDER):
        self.file_name = file_name or STORE_KEY
        self.folder = folder
        self._records: List[TransactionRecord] = []

    @property
    def records(self) -> Tuple[TransactionRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def _persist(self, records: List[TransactionRecord]) -> None:
        save_file(self.file_name, _RECORDS.dump_json(records), self.folder)
        self._records = records

    def load(self) -> None:
        raw = load_file(self.file_name, self.folder)
        if raw is None:
            self._records = []
            return
        try:
            payload = json.loads(raw)
        except ValueError:
            logger.exception("Persisted store %s is not valid JSON; starting empty", self.file_name)
            self._records = []
            return
        self.replace_all(payload, persist=False)

    def replace_all(self, records: object, *, persist: bool = True) -> None:
        """Swap in a new record set; invalid content leaves the store empty."""
        validated: List[TransactionRecord] = []
        if not isinstance(records, (list, tuple)):
            logger.warning("Ignoring record set: expected a list, got %s", type(records).__name__)
        else:
            try:
                validated = _RECORDS.validate_python(list(records))
            except ValidationError as e:
                logger.warning("Ignoring record set: %d invalid record fields", e.error_count())
        if persist:
            self._persist(validated)
        else:
            self._records = validated

    def append(self, batch: Iterable[TransactionRecord]) -> int:
        batch = list(batch)
        if not batch:
            return 0
        self._persist(self._records + batch)
        logger.info("Appended %d records (%d total)", len(batch), len(self._records))
        return len(batch)

    def clear(self, confirmed: bool = False) -> None:
        if not confirmed:
            raise PurgeNotConfirmed("Purging the store requires explicit confirmation.")
        removed = len(self._records)
        self._persist([])
        logger.info("Purged %d records", removed)
