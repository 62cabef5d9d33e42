# leakmon_cli/discovery.py
"""
Producers that discover new scan targets on GitHub.

``RepositoryProducer`` watches the public events feed and admits
repositories that pass the star / size / permission filter;
``GistProducer`` watches the public gists feed. Both enqueue ``ScanTarget``s
and poll on a fixed interval forever.
"""

import time
import random
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, List, Optional

import requests

from .alerts import AlertLogger
from .config import GitHubConfig
from .exceptions import DiscoveryError
from .pipeline import ScanTarget, TargetKind
from .workers import TargetQueue

logger = logging.getLogger('leakmon-cli.discovery')

REPOSITORY_EVENT_TYPES = frozenset({'PushEvent', 'CreateEvent'})


class GitHubClient:
    """Minimal GitHub REST client; one configured token is picked at random per request."""

    def __init__(self, config: GitHubConfig):
        from . import __version__ as leakmon_version
        self.api_url = str(config.api_url).rstrip('/')
        self.tokens = list(config.tokens)
        self.timeout = config.request_timeout
        self.session = requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github+json',
            'User-Agent': f'leakmon-cli/{leakmon_version}',
        })

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        headers = {}
        if self.tokens:
            headers['Authorization'] = f"token {random.choice(self.tokens)}"
        try:
            resp = self.session.get(f"{self.api_url}{path}", params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise DiscoveryError(f"Request to {path} failed: {e}", endpoint=path, original_error=e)
        if resp.status_code != 200:
            raise DiscoveryError(f"Unexpected response from {path}", endpoint=path, status_code=resp.status_code)
        try:
            return resp.json()
        except ValueError as e:
            raise DiscoveryError(f"Invalid JSON from {path}", endpoint=path, original_error=e)

    def get_events(self) -> List[Dict[str, Any]]:
        return self._get('/events', {'per_page': 100})

    def get_repository(self, repo_id: int) -> Dict[str, Any]:
        return self._get(f'/repositories/{repo_id}')

    def get_public_gists(self) -> List[Dict[str, Any]]:
        return self._get('/gists/public', {'per_page': 100})


class RecentlySeen:
    """Bounded memory of identifiers already handled, oldest forgotten first."""

    def __init__(self, capacity: int = 10000):
        self.capacity = capacity
        self._items: 'OrderedDict[Hashable, None]' = OrderedDict()

    def add(self, key: Hashable) -> bool:
        """Remember ``key``; returns False if it was already known."""
        if key in self._items:
            self._items.move_to_end(key)
            return False
        self._items[key] = None
        if len(self._items) > self.capacity:
            self._items.popitem(last=False)
        return True

    def __len__(self) -> int:
        return len(self._items)


class PollingProducer:
    name = 'producer'

    def __init__(self, client: GitHubClient, targets: TargetQueue, config: GitHubConfig, log: AlertLogger,
                 sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.targets = targets
        self.config = config
        self.log = log
        self.sleep = sleep
        self.seen = RecentlySeen()

    def poll_once(self) -> int:
        raise NotImplementedError

    def run_forever(self) -> None:
        while True:
            try:
                enqueued = self.poll_once()
                logger.debug(f"{self.name}: enqueued {enqueued} new target(s)")
            except DiscoveryError as e:
                self.log.warn("Error polling for %s: %s", self.name, e)
            self.sleep(self.config.poll_interval)

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.run_forever, name=self.name, daemon=True)
        thread.start()
        return thread


class RepositoryProducer(PollingProducer):
    name = 'repositories'

    def is_admissible(self, repo: Dict[str, Any]) -> bool:
        return (
            bool((repo.get('permissions') or {}).get('pull'))
            and int(repo.get('stargazers_count') or 0) >= self.config.minimum_stars
            and int(repo.get('size') or 0) < self.config.maximum_repository_size
        )

    def poll_once(self) -> int:
        enqueued = 0
        for event in self.client.get_events():
            if event.get('type') not in REPOSITORY_EVENT_TYPES:
                continue
            repo_id = (event.get('repo') or {}).get('id')
            if repo_id is None or not self.seen.add(repo_id):
                continue

            try:
                repo = self.client.get_repository(repo_id)
            except DiscoveryError as e:
                self.log.warn("Failed to retrieve repository %s: %s", repo_id, e)
                continue

            clone_url = repo.get('clone_url')
            if not clone_url or not self.is_admissible(repo):
                self.log.debug("Skipping repository %s", repo.get('full_name', repo_id))
                continue

            self.targets.put(ScanTarget(clone_url, TargetKind.REPOSITORY))
            enqueued += 1
        return enqueued


class GistProducer(PollingProducer):
    name = 'gists'

    def poll_once(self) -> int:
        enqueued = 0
        for gist in self.client.get_public_gists():
            url = gist.get('git_pull_url')
            if not url or not self.seen.add(gist.get('id', url)):
                continue
            self.targets.put(ScanTarget(url, TargetKind.GIST))
            enqueued += 1
        return enqueued
