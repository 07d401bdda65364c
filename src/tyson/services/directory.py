"""Virtual machine enumeration across paged listings."""

from typing import Callable, List, Optional, Set

from tyson.errors import RetrievalError
from tyson.models import InstancePage, InstanceRecord

PageFetcher = Callable[[Optional[str]], InstancePage]


class ResourceDirectory:
    """Lists every virtual machine in a subscription or resource group."""

    def __init__(self, control_plane, logger):
        self.control_plane = control_plane
        self.logger = logger

    def list_all(self) -> List[InstanceRecord]:
        return self._collect(self.control_plane.list_all_instances_page, "the subscription")

    def list_in_group(self, group: str) -> List[InstanceRecord]:
        return self._collect(
            lambda cursor: self.control_plane.list_instances_page(group, cursor),
            f"resource group '{group}'",
        )

    def _collect(self, fetch: PageFetcher, scope: str) -> List[InstanceRecord]:
        machines: List[InstanceRecord] = []
        seen_cursors: Set[str] = set()
        cursor: Optional[str] = None
        page_number = 0

        while True:
            page_number += 1
            try:
                page = fetch(cursor)
            except Exception as exc:
                raise RetrievalError(
                    f"Could not list virtual machines in {scope} (page {page_number}): {exc}"
                ) from exc

            machines.extend(page.items)
            self.logger.debug(
                "Fetched page %s with %s virtual machines in %s.",
                page_number,
                len(page.items),
                scope,
            )

            cursor = page.next_cursor
            if not cursor:
                break
            if cursor in seen_cursors:
                raise RetrievalError(
                    f"Listing of {scope} returned a repeated continuation cursor on page {page_number}."
                )
            seen_cursors.add(cursor)

        self.logger.info("Found %s virtual machines in %s.", len(machines), scope)
        return machines
