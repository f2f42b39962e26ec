from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional, Union

from appforge.agents.base import Worker
from appforge.schemas.messages import WorkerType

logger = logging.getLogger(__name__)


class WorkerRegistry:
    """Holds one worker instance per WorkerType.

    Filled once at start-up, before any ``execute`` call; registration is
    not synchronized.
    """

    def __init__(self, workers: Optional[List[Worker]] = None) -> None:
        self._workers: Dict[WorkerType, Worker] = {}
        for worker in workers or []:
            self.register(worker)

    def register(self, worker: Worker) -> None:
        if worker.type in self._workers:
            logger.debug("Replacing %s worker %r", worker.type.value, self._workers[worker.type])
        self._workers[worker.type] = worker

    def get(self, worker_type: Union[WorkerType, str]) -> Optional[Worker]:
        parsed = WorkerType.parse(worker_type)
        if parsed is None:
            return None
        return self._workers.get(parsed)

    def types(self) -> List[WorkerType]:
        return list(self._workers)

    def __contains__(self, worker_type: object) -> bool:
        return self.get(worker_type) is not None  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[Worker]:
        return iter(list(self._workers.values()))

    def __len__(self) -> int:
        return len(self._workers)
