"""
Инфраструктура общего ядра: коллекция документов в памяти.

Коллекция рассылает подписчикам полный снимок после каждого изменения
и при необходимости сохраняет документы в JSON-файл.
"""

import copy
import json
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .domain import EntityId, generate_id
from .interfaces import Document, ILogger, SnapshotHandler, Unsubscribe
from .logger import StandardLogger


class InMemoryCollection:
    """Коллекция документов с подпиской на полные снимки."""

    def __init__(
        self,
        name: str,
        file_path: Optional[str] = None,
        logger: Optional[ILogger] = None,
        snapshot_filter: Optional[Callable[[Document], bool]] = None,
    ):
        """
        Инициализирует коллекцию.

        Args:
            name: Имя коллекции (для логов)
            file_path: Путь к JSON-файлу; без него данные живут только в памяти
            logger: Логгер
            snapshot_filter: Какие документы попадают в снимки подписчиков
        """
        self.name = name
        self._file_path = Path(file_path) if file_path else None
        self._logger = logger or StandardLogger(__name__)
        self._filter = snapshot_filter
        self._documents: Dict[EntityId, Document] = {}
        self._subscribers: List[SnapshotHandler] = []
        self._load_data()

    def _load_data(self) -> None:
        """Загружает документы из JSON-файла."""
        if self._file_path is None or not self._file_path.exists():
            return

        raw_data = self._file_path.read_text(encoding="utf-8")
        if not raw_data.strip():
            return

        for item in json.loads(raw_data):
            self._documents[item["id"]] = item

    def _save_data(self) -> None:
        """Сохраняет документы в JSON-файл."""
        if self._file_path is None:
            return
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._file_path, "w", encoding="utf-8") as f:
            json.dump(
                list(self._documents.values()),
                f,
                indent=2,
                ensure_ascii=False,
                default=str,
            )

    def snapshot(self) -> List[Document]:
        """Копия текущего набора документов."""
        docs = [copy.deepcopy(d) for d in self._documents.values()]
        if self._filter is not None:
            docs = [d for d in docs if self._filter(d)]
        return docs

    def get(self, document_id: EntityId) -> Optional[Document]:
        doc = self._documents.get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    def insert(self, document: Document) -> EntityId:
        """Добавляет документ и возвращает его идентификатор."""
        doc = dict(document)
        doc_id = doc.get("id") or generate_id()
        if doc_id in self._documents:
            raise ValueError(f"Документ {doc_id} уже существует в {self.name}")
        doc["id"] = doc_id
        self._documents[doc_id] = doc
        self._changed()
        return doc_id

    def update(self, document_id: EntityId, changes: Document) -> Document:
        if document_id not in self._documents:
            raise KeyError(f"Документ {document_id} не найден в {self.name}")
        self._documents[document_id].update(changes)
        self._changed()
        return self.get(document_id)

    def delete(self, document_id: EntityId) -> bool:
        removed = self._documents.pop(document_id, None) is not None
        if removed:
            self._changed()
        return removed

    def subscribe(self, handler: SnapshotHandler) -> Unsubscribe:
        """Подписывает обработчик и сразу отдает ему текущий снимок."""
        self._subscribers.append(handler)
        self._deliver(handler, self.snapshot())

        def unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def _changed(self) -> None:
        self._save_data()
        snapshot = self.snapshot()
        for handler in list(self._subscribers):
            self._deliver(handler, snapshot)

    def _deliver(self, handler: SnapshotHandler, snapshot: List[Document]) -> None:
        try:
            handler(snapshot)
        except Exception as e:
            self._logger.error(
                f"Error in snapshot handler for {self.name}",
                error=str(e),
                documents=len(snapshot),
            )
