"""
File-backed Feed Storage

Persists crawl sessions, their pages and feeds, and AI-mirror documents as
JSON files, one directory per collection.
"""

import hashlib
import json
import re
import uuid
from pathlib import Path
from typing import Dict, Any, List, Optional

import aiofiles

from bifurcate.core.base import CrawlResult, StorageManagerInterface, StorageError
from bifurcate.core.logging import get_logger
from bifurcate.feeds.assemblers import build_json_payload
from bifurcate.utils.dates import isoformat_utc


CRAWL_SESSIONS = 'crawl_sessions'
CRAWLED_DATA = 'crawled_data'
FEED_DATA = 'feed_data'
AI_MIRROR_DATA = 'ai_mirror_data'

COLLECTIONS = (CRAWL_SESSIONS, CRAWLED_DATA, FEED_DATA, AI_MIRROR_DATA)

# Session ids become file names, so only UUID-shaped ids are accepted
SESSION_ID_PATTERN = re.compile(
    r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}', re.IGNORECASE
)


class FileFeedStorage(StorageManagerInterface):
    """
    JSON document store under a base directory.

    Crawl artefacts are keyed by session id; AI-mirror documents are keyed
    by a hash of their source URL so a later lookup finds them.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.logger = get_logger(__name__)
        self.base_path = Path(config.get('base_path', './feeds'))

    async def initialize(self) -> None:
        """Create the collection directories"""
        try:
            for collection in COLLECTIONS:
                (self.base_path / collection).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create storage at {self.base_path}: {e}")
        self._initialized = True
        self.logger.debug(f"Feed storage ready at {self.base_path}")

    async def cleanup(self) -> None:
        """Nothing is held open between calls"""
        self._initialized = False

    def _document_path(self, collection: str, key: str) -> Path:
        return self.base_path / collection / f"{key}.json"

    def _session_key(self, session_id: Any) -> str:
        if not isinstance(session_id, str) or not SESSION_ID_PATTERN.fullmatch(session_id):
            raise StorageError(f"Invalid session id: {session_id!r}")
        return session_id

    def _url_key(self, url: str) -> str:
        return hashlib.md5(url.encode('utf-8')).hexdigest()

    async def _write(self, collection: str, key: str, document: Any) -> None:
        path = self._document_path(collection, key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'w', encoding='utf-8') as f:
                await f.write(json.dumps(document, indent=2, ensure_ascii=False))
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")

    async def _read(self, collection: str, key: str) -> Optional[Any]:
        path = self._document_path(collection, key)
        if not path.exists():
            return None
        try:
            async with aiofiles.open(path, 'r', encoding='utf-8') as f:
                return json.loads(await f.read())
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {path}: {e}")

    async def save_crawl(self, result: CrawlResult, root_url: str,
                         session_id: Optional[str] = None) -> str:
        """
        Save a finished crawl as a session, its page documents and its feed.

        Args:
            result: Assembled crawl result
            root_url: URL the crawl started from
            session_id: Existing id to reuse, else a new UUID

        Returns:
            Session id
        """
        session_id = self._session_key(session_id) if session_id else str(uuid.uuid4())
        created_at = isoformat_utc()

        pages = [
            dict(page.to_dict(), createdAt=created_at, sessionId=session_id)
            for page in result.pages
        ]
        await self._write(CRAWLED_DATA, session_id, pages)

        await self._write(FEED_DATA, session_id, {
            'siteDomain': result.site,
            'rootUrl': root_url,
            'format': 'both',
            'xmlContent': result.xml,
            'jsonContent': json.dumps(build_json_payload(result), ensure_ascii=False),
            'pageCount': len(result.pages),
            'sessionId': session_id,
            'createdAt': created_at,
        })

        await self._write(CRAWL_SESSIONS, session_id, {
            'sessionId': session_id,
            'siteDomain': result.site,
            'rootUrl': root_url,
            'pageCount': len(result.pages),
            'generatedAt': result.generated_at,
            'completedAt': created_at,
            'status': 'completed',
        })

        self.logger.info(f"Saved crawl session {session_id} ({len(result.pages)} pages) to {self.base_path}")
        return session_id

    async def get_crawl_history(self) -> List[Dict[str, Any]]:
        """Stored sessions, newest first"""
        sessions = []
        for path in (self.base_path / CRAWL_SESSIONS).glob('*.json'):
            session = await self._read(CRAWL_SESSIONS, path.stem)
            if session:
                sessions.append(session)
        return sorted(sessions, key=lambda s: s.get('generatedAt', ''), reverse=True)

    async def get_pages_by_session(self, session_id: str) -> List[Dict[str, Any]]:
        """Page documents of one session, highest priority first"""
        session_id = self._session_key(session_id)
        pages = await self._read(CRAWLED_DATA, session_id) or []
        return sorted(pages, key=lambda p: p.get('priority', 0), reverse=True)

    async def get_feed_by_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        session_id = self._session_key(session_id)
        return await self._read(FEED_DATA, session_id)

    async def delete_crawl_session(self, session_id: str) -> bool:
        """Delete a session with its pages and feed; False if it did not exist"""
        session_id = self._session_key(session_id)
        session_path = self._document_path(CRAWL_SESSIONS, session_id)
        existed = session_path.exists()
        try:
            for collection in (CRAWLED_DATA, FEED_DATA, CRAWL_SESSIONS):
                path = self._document_path(collection, session_id)
                if path.exists():
                    path.unlink()
        except OSError as e:
            raise StorageError(f"Failed to delete session {session_id}: {e}")
        return existed

    async def save_ai_mirror(self, document: Dict[str, Any],
                             session_id: Optional[str] = None) -> str:
        """Store an AI-mirror document under its source URL"""
        source_url = document.get('source_url')
        if not source_url:
            raise StorageError("AI mirror document has no source_url")

        stored = dict(document)
        stored.setdefault('createdAt', isoformat_utc())
        if session_id:
            stored['sessionId'] = session_id

        key = self._url_key(source_url)
        await self._write(AI_MIRROR_DATA, key, stored)
        self.logger.debug(f"Saved AI mirror for {source_url}")
        return key

    async def get_ai_mirror_by_url(self, url: str) -> Optional[Dict[str, Any]]:
        return await self._read(AI_MIRROR_DATA, self._url_key(url))

    def get_storage_stats(self) -> Dict[str, Any]:
        """Document counts per collection"""
        return {
            'base_path': str(self.base_path),
            'collections': {
                collection: len(list((self.base_path / collection).glob('*.json')))
                for collection in COLLECTIONS
            },
        }
