"""Install components into the category libraries: single, regenerate and batch."""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .easyeda.component import ComponentData, ComponentNotFoundError, component_from_record, validate_lcsc_id
from .kicad.category_router import get_3d_models_dir_name, get_footprint_reference, get_library_category
from .kicad.footprint_writer import get_footprint, get_footprint_name
from .kicad.library import ensure_lib_structure, save_footprint, update_project_lib_tables, write_symbol
from .kicad.symbol_writer import get_symbol_name
from .kicad.version import DEFAULT_KICAD_VERSION

logger = logging.getLogger(__name__)

MAX_BATCH_WORKERS = 10
MAX_BATCH_SIZE = 10
MAX_REPORTED_FAILURES = 5

Fetcher = Callable[[str], Optional[Union[Dict[str, Any], ComponentData]]]

_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: str) -> threading.Lock:
    """One lock per target file, shared by every install in the process."""
    key = os.path.abspath(path)
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


@dataclass
class InstallResult:
    lcsc_id: str
    name: str
    category: str
    symbol_action: str  # created, appended, exists, replaced
    footprint_type: str  # reference or generated
    footprint_ref: str
    footprint_saved: bool = False


@dataclass
class BatchSummary:
    success: int = 0
    failed: int = 0
    skipped: int = 0
    failures: List[Tuple[str, str]] = field(default_factory=list)  # (id, message), first few only
    results: List[InstallResult] = field(default_factory=list)

    def add_failure(self, ident: str, message: str) -> None:
        self.failed += 1
        if len(self.failures) < MAX_REPORTED_FAILURES:
            self.failures.append((ident, message))


def install_component(
    component: ComponentData,
    lib_dir: str,
    force: bool = False,
    strict: bool = True,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    include_3d_model: bool = False,
    update_tables: bool = True,
    log: Callable[[str], None] = print,
) -> InstallResult:
    """Write a component's symbol and footprint into the libraries under *lib_dir*.

    The symbol goes into its category library, the footprint into the
    shared ``.pretty`` directory unless a KiCad built-in is used.  An
    existing symbol is only replaced with *force*.
    """
    info = component.info
    name = get_symbol_name(component)
    category = get_library_category(info.prefix, info.category, info.description)
    paths = ensure_lib_structure(lib_dir, category)
    log(f"Installing {info.lcsc_id or name} into {category}")

    model_path = ""
    if include_3d_model and component.model3d:
        model_path = f"${{KIPRJMOD}}/{get_3d_models_dir_name()}/{get_footprint_name(component)}.step"

    fp = get_footprint(component, strict=strict, model_path=model_path, kicad_version=kicad_version)
    fp_saved = False
    if fp.type == "generated":
        fp_path = os.path.join(paths["fp_dir"], f"{fp.name}.kicad_mod")
        with _lock_for(fp_path):
            fp_saved = save_footprint(paths["fp_dir"], fp.name, fp.content, overwrite=force)
        footprint_ref = get_footprint_reference(fp.name)
        if fp_saved:
            log(f"  Saved: {fp_path}")
        else:
            log(f"  Skipped: {fp_path} (exists, overwrite=off)")
    else:
        footprint_ref = fp.reference
        log(f"  Using KiCad footprint {footprint_ref}")

    with _lock_for(paths["sym_path"]):
        action = write_symbol(paths["sym_path"], component, force, kicad_version, footprint_ref)
    log(f"  Symbol {action}: {paths['sym_path']}")

    if update_tables:
        with _lock_for(os.path.join(lib_dir, "sym-lib-table")):
            if update_project_lib_tables(lib_dir, [category]):
                log("NOTE: Reopen project for new library tables to take effect.")

    logger.info("Installed %s (%s): symbol %s, footprint %s", name, category, action, footprint_ref)
    return InstallResult(
        lcsc_id=info.lcsc_id,
        name=name,
        category=category,
        symbol_action=action,
        footprint_type=fp.type,
        footprint_ref=footprint_ref,
        footprint_saved=fp_saved,
    )


def regenerate_library(
    components: List[ComponentData],
    lib_dir: str,
    on_progress: Optional[Callable[[int, int, str], None]] = None,
    strict: bool = True,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    log: Callable[[str], None] = print,
) -> BatchSummary:
    """Rewrite every given component in place, one at a time.

    Failures are recorded and the walk continues.  *on_progress* receives
    ``(done, total, name)`` after each component.
    """
    summary = BatchSummary()
    total = len(components)
    for index, component in enumerate(components, 1):
        ident = component.info.lcsc_id or component.info.name
        try:
            result = install_component(
                component, lib_dir, force=True, strict=strict, kicad_version=kicad_version, log=log
            )
        except Exception as e:
            logger.warning("Regenerating %s failed: %s", ident, e)
            summary.add_failure(ident, str(e) or type(e).__name__)
        else:
            summary.success += 1
            summary.results.append(result)
        if on_progress:
            on_progress(index, total, ident)
    return summary


def _fetch_component(lcsc_id: str, fetcher: Fetcher) -> ComponentData:
    record = fetcher(lcsc_id)
    if record is None:
        raise ComponentNotFoundError(f"Component {lcsc_id} not found")
    if isinstance(record, ComponentData):
        return record
    return component_from_record(record, lcsc_id)


def batch_install(
    lcsc_ids: List[str],
    fetcher: Fetcher,
    lib_dir: str,
    force: bool = False,
    strict: bool = True,
    kicad_version: int = DEFAULT_KICAD_VERSION,
    max_workers: int = MAX_BATCH_WORKERS,
    log: Callable[[str], None] = print,
) -> BatchSummary:
    """Fetch and install many components concurrently.

    *fetcher* maps an LCSC id to a raw component record (or ComponentData),
    returning None when the part does not exist.  Components whose symbol
    is already installed count as skipped.
    Raises ValueError for more than MAX_BATCH_SIZE ids.
    """
    if len(lcsc_ids) > MAX_BATCH_SIZE:
        raise ValueError(f"At most {MAX_BATCH_SIZE} components per batch, got {len(lcsc_ids)}")
    summary = BatchSummary()
    ids = []
    for raw in lcsc_ids:
        try:
            lcsc_id = validate_lcsc_id(raw)
        except ValueError as e:
            summary.add_failure(raw, str(e))
            continue
        if lcsc_id not in ids:
            ids.append(lcsc_id)
    if not ids:
        return summary

    def install(lcsc_id: str) -> InstallResult:
        component = _fetch_component(lcsc_id, fetcher)
        return install_component(
            component, lib_dir, force=force, strict=strict, kicad_version=kicad_version, log=log
        )

    workers = max(1, min(max_workers, MAX_BATCH_WORKERS, len(ids)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(install, lcsc_id): lcsc_id for lcsc_id in ids}
        for future in as_completed(futures):
            lcsc_id = futures[future]
            try:
                result = future.result()
            except Exception as e:
                # One bad part must not abort the batch
                logger.warning("Installing %s failed: %s", lcsc_id, e)
                summary.add_failure(lcsc_id, str(e) or type(e).__name__)
                continue
            summary.results.append(result)
            if result.symbol_action == "exists":
                summary.skipped += 1
            else:
                summary.success += 1

    log(f"Batch install: {summary.success} installed, {summary.skipped} skipped, {summary.failed} failed")
    return summary
