import asyncio
import logging
from typing import Awaitable, Callable, List, Tuple
from core.bulk.urls import looks_like_url, normalize_url, tokenize
from core.errors import DuplicateRecordError
from models.bulk import BulkFailure, BulkResult
from models.record import Site

logger = logging.getLogger(__name__)

SubmitFn = Callable[[str], Awaitable[Site]]

class BulkSubmissionCoordinator:
    """
    Turns pasted text into one site submission per unique, valid URL.
    Submissions run concurrently; one failure never blocks the others.
    """

    def __init__(self, submit: SubmitFn):
        self.submit = submit

    @staticmethod
    def prepare(text: str) -> Tuple[List[str], List[BulkFailure]]:
        """
        Tokenizes, normalizes, validates and de-duplicates (first occurrence wins).
        Returns (candidates, invalid tokens).
        """
        candidates: List[str] = []
        invalid: List[BulkFailure] = []
        seen = set()

        for token in tokenize(text):
            try:
                url = normalize_url(token)
            except ValueError:
                url = ""
            if not url or not looks_like_url(url):
                invalid.append(BulkFailure(url=token, reason="not a valid http(s) URL"))
                continue
            if url in seen:
                continue
            seen.add(url)
            candidates.append(url)

        return candidates, invalid

    async def _submit_one(self, url: str) -> Site | BulkFailure:
        try:
            return await self.submit(url)
        except DuplicateRecordError:
            return BulkFailure(url=url, reason="already registered")
        except Exception as e:
            logger.warning(f"Bulk submission failed for {url}: {e}")
            return BulkFailure(url=url, reason=str(e) or type(e).__name__)

    async def run(self, text: str) -> BulkResult:
        candidates, invalid = self.prepare(text)
        logger.info(f"Bulk submission: {len(candidates)} candidate(s), {len(invalid)} invalid token(s)")

        outcomes = await asyncio.gather(*(self._submit_one(url) for url in candidates))

        ok = [o for o in outcomes if not isinstance(o, BulkFailure)]
        ng = invalid + [o for o in outcomes if isinstance(o, BulkFailure)]
        return BulkResult(total=len(candidates), ok=ok, ng=ng)
