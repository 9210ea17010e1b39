"""Workflow orchestration module for subtranslator.

This module runs the per-file pipeline (read, parse, translate, serialize,
write) over a batch of subtitle files. Files are processed concurrently on a
bounded thread pool; a failure in one file is recorded and never stops the
others.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypedDict, Union

from ..config.settings import (
    DEFAULT_FILE_PATTERN,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SRC_LANGUAGE,
    DEFAULT_TARGET_LANGUAGE,
)
from ..utils.common import (
    ThreadSafeCounter,
    ensure_directory,
    find_subtitle_files,
    validate_file_exists,
)
from .entry import SubtitleError
from .subtitle import SubtitleProcessor
from .translation import SubtitleTranslator, TranslationError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class FileResult(TypedDict, total=False):
    """Type definition for the outcome of one file."""

    status: str
    input_path: str
    output_path: str
    encoding: Optional[str]
    output_encoding: Optional[str]
    entries: Optional[int]
    lines: Optional[int]
    total_time: float
    error: Optional[str]
    error_type: Optional[str]


class WorkflowError(Exception):
    """Exception raised for workflow errors."""


class SubtitleWorkflow:
    """Main workflow orchestrator for subtitle translation."""

    def __init__(
        self,
        translator: SubtitleTranslator,
        processor: Optional[SubtitleProcessor] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        """Initialize the workflow.

        Args:
            translator: Translator bound to a backend and credential
            processor: Subtitle file processor, a default one when None
            max_workers: Number of files processed at the same time

        Raises:
            WorkflowError: If max_workers is not positive
        """
        if max_workers < 1:
            raise WorkflowError(f"max_workers must be at least 1, got {max_workers}")

        self.translator = translator
        self.processor = processor or SubtitleProcessor()
        self.max_workers = max_workers
        self._cancel_event = threading.Event()

        logger.info(
            "Initialized workflow with service: %s, workers: %d",
            translator.service_name,
            max_workers,
        )

    def cancel(self) -> None:
        """Stop starting new files. Files already in progress are finished."""
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested, no further files will be started")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def translate_file(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        *,  # Force keyword-only arguments
        src_lang: str = DEFAULT_SRC_LANGUAGE,
        target_lang: str = DEFAULT_TARGET_LANGUAGE,
        encoding: Optional[str] = None,
    ) -> FileResult:
        """Translate one subtitle file.

        Nothing is written unless every stage succeeded.

        Args:
            input_path: Path to input subtitle file
            output_path: Path to output subtitle file
            src_lang: Source language code
            target_lang: Target language code
            encoding: Input encoding; detected when None

        Returns:
            Dictionary with translation results

        Raises:
            WorkflowError: If the output path is the input file
            SubtitleError: If the file can't be read, parsed or written
            TranslationError: If translation fails
        """
        input_path_obj = validate_file_exists(input_path)
        output_path_obj = Path(output_path)

        if output_path_obj.resolve() == input_path_obj.resolve():
            raise WorkflowError(f"Output path would overwrite input file: {input_path_obj}")

        logger.info("Translating subtitles: %s -> %s", input_path_obj, output_path_obj)
        start_time = time.time()

        document = self.processor.parse_file(input_path_obj, encoding, src_lang)
        translated = self.translator.translate_document(document, src_lang, target_lang)
        output_encoding = self.processor.save_file(translated, output_path_obj)

        total_time = time.time() - start_time
        logger.info("Translated %s in %.2f seconds", input_path_obj.name, total_time)

        return {
            "status": "completed",
            "input_path": str(input_path_obj),
            "output_path": str(output_path_obj),
            "encoding": document.encoding,
            "output_encoding": output_encoding,
            "entries": len(translated),
            "lines": sum(translated.line_counts()),
            "total_time": total_time,
            "error": None,
            "error_type": None,
        }

    def _process_one(
        self,
        input_path: Path,
        output_dir: Path,
        options: Dict[str, Any],
        counter: ThreadSafeCounter,
        total: int,
        progress_callback: Optional[ProgressCallback],
    ) -> FileResult:
        if self._cancel_event.is_set():
            return _cancelled_result(input_path)

        try:
            result = self.translate_file(input_path, output_dir / input_path.name, **options)
        except (WorkflowError, SubtitleError, TranslationError, OSError, ValueError) as e:
            logger.error("Failed to process %s: %s", input_path, e)
            result = _failed_result(input_path, e)
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("Unexpected error processing %s", input_path)
            result = _failed_result(input_path, e)

        done = counter.increment()
        if progress_callback:
            progress_callback(done, total, str(input_path))
        return result

    def _reject_duplicate(
        self,
        input_path: Path,
        first_path: Path,
        counter: ThreadSafeCounter,
        total: int,
        progress_callback: Optional[ProgressCallback],
    ) -> "Future[FileResult]":
        """Fail a file whose output name is already taken by an earlier input."""
        error = WorkflowError(
            f"Output file {input_path.name} is already written for {first_path}"
        )
        logger.error("Skipping %s: %s", input_path, error)
        future: "Future[FileResult]" = Future()
        future.set_result(_failed_result(input_path, error))

        done = counter.increment()
        if progress_callback:
            progress_callback(done, total, str(input_path))
        return future

    def batch_process(
        self,
        input_paths: Sequence[Union[str, Path]],
        output_dir: Union[str, Path],
        *,  # Force keyword-only arguments
        src_lang: str = DEFAULT_SRC_LANGUAGE,
        target_lang: str = DEFAULT_TARGET_LANGUAGE,
        encoding: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, FileResult]:
        """Translate many files into one output directory.

        Each output file gets the name of its input file; a later input whose
        name is already taken fails with a WorkflowError instead of overwriting
        the earlier output. Interrupting with Ctrl-C cancels the files that
        have not started yet.

        Args:
            input_paths: Subtitle files to translate
            output_dir: Output directory for translated files
            src_lang: Source language code
            target_lang: Target language code
            encoding: Input encoding; detected per file when None
            progress_callback: Called as (completed, total, path) after each file

        Returns:
            Dictionary mapping input paths to results, in input order
        """
        output_dir_obj = ensure_directory(output_dir)
        paths = list(dict.fromkeys(Path(p) for p in input_paths))
        total = len(paths)
        counter = ThreadSafeCounter()
        options: Dict[str, Any] = {
            "src_lang": src_lang,
            "target_lang": target_lang,
            "encoding": encoding,
        }

        futures: List[Tuple[Path, "Future[FileResult]"]] = []
        claimed: Dict[str, Path] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for path in paths:
                # Case-insensitive file systems map X.srt and x.srt to one file
                name = path.name.casefold()
                if name in claimed:
                    rejected = self._reject_duplicate(
                        path, claimed[name], counter, total, progress_callback
                    )
                    futures.append((path, rejected))
                    continue
                claimed[name] = path
                future = executor.submit(
                    self._process_one,
                    path,
                    output_dir_obj,
                    options,
                    counter,
                    total,
                    progress_callback,
                )
                futures.append((path, future))
            try:
                wait([future for _, future in futures])
            except KeyboardInterrupt:
                self.cancel()
                for _, future in futures:
                    future.cancel()

        results: Dict[str, FileResult] = {}
        for path, future in futures:
            if future.cancelled():
                results[str(path)] = _cancelled_result(path)
            else:
                results[str(path)] = future.result()

        summary = summarize_results(results)
        logger.info(
            "Batch processing completed: %d/%d successful, %d failed, %d cancelled",
            summary["completed"],
            summary["total"],
            summary["failed"],
            summary["cancelled"],
        )
        return results

    def translate_folder(
        self,
        source_dir: Union[str, Path],
        output_dir: Union[str, Path],
        *,  # Force keyword-only arguments
        pattern: str = DEFAULT_FILE_PATTERN,
        src_lang: str = DEFAULT_SRC_LANGUAGE,
        target_lang: str = DEFAULT_TARGET_LANGUAGE,
        encoding: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Dict[str, FileResult]:
        """Translate every matching subtitle file of a folder.

        Raises:
            WorkflowError: If the output folder is the source folder
            FileNotFoundError: If the source folder does not exist
        """
        files = find_subtitle_files(source_dir, pattern)
        if Path(output_dir).resolve() == Path(source_dir).resolve():
            raise WorkflowError("Output folder must differ from the source folder")

        logger.info("Found %d files matching '%s' in %s", len(files), pattern, source_dir)
        return self.batch_process(
            files,
            output_dir,
            src_lang=src_lang,
            target_lang=target_lang,
            encoding=encoding,
            progress_callback=progress_callback,
        )

    def get_workflow_info(self) -> Dict[str, Any]:
        """Get information about the workflow configuration."""
        return {
            "translator": self.translator.get_service_info(),
            "max_workers": self.max_workers,
            "cancelled": self.cancelled,
        }


def _failed_result(input_path: Path, error: BaseException) -> FileResult:
    return {
        "status": "failed",
        "input_path": str(input_path),
        "output_path": "",
        "encoding": None,
        "output_encoding": None,
        "entries": None,
        "lines": None,
        "total_time": 0.0,
        "error": str(error),
        "error_type": type(error).__name__,
    }


def _cancelled_result(input_path: Path) -> FileResult:
    return {
        "status": "cancelled",
        "input_path": str(input_path),
        "output_path": "",
        "total_time": 0.0,
        "error": None,
        "error_type": None,
    }


def summarize_results(results: Dict[str, FileResult]) -> Dict[str, int]:
    """Count batch results per status."""
    summary = {"total": len(results), "completed": 0, "failed": 0, "cancelled": 0}
    for result in results.values():
        status = result.get("status", "failed")
        summary[status] = summary.get(status, 0) + 1
    return summary
