"""Source bundling module for iac-dlp.

Collects infrastructure files into the single text blob the anonymizer works
on. Every file is introduced by a ``### FILE: <path> ###`` sentinel header.
Uses pathspec for .gitignore and exclude-glob semantics.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from dataclasses import dataclass, field
from pathlib import Path

import pathspec

from .config import (
    DEFAULT_EXCLUDE_GLOBS,
    DEFAULT_INCLUDE_EXTENSIONS,
    DEFAULT_MAX_FILE_BYTES,
    MULTI_FILE_BANNER,
    NO_FILES_MESSAGE,
    BundleStats,
    SourceFile,
)
from .utils import file_header, is_binary_file, normalize_path, read_file_safe


class SourceError(Exception):
    """Error while reading source input."""

    pass


@dataclass
class SourceBundle:
    """A text blob plus the files it was built from."""

    text: str
    files: list[SourceFile] = field(default_factory=list)
    stats: BundleStats = field(default_factory=BundleStats)


class GitIgnoreParser:
    """
    Parser for .gitignore files.

    Loads every .gitignore below the root with pathspec's gitignore semantics,
    so negations and directory rules behave like git.
    """

    def __init__(self, root_path: Path):
        self.root_path = root_path.resolve()
        self._specs: dict[Path, pathspec.PathSpec] = {}
        self._load_gitignores()

    def _load_gitignores(self) -> None:
        """Load all .gitignore files under the root."""
        for gitignore_path in sorted(self.root_path.rglob(".gitignore")):
            if ".git" in gitignore_path.relative_to(self.root_path).parts[:-1]:
                continue
            self._load_gitignore_file(gitignore_path, gitignore_path.parent)

    def _load_gitignore_file(self, gitignore_path: Path, base_path: Path) -> None:
        """Load a single .gitignore file."""
        try:
            with open(gitignore_path, encoding="utf-8", errors="replace") as f:
                patterns = f.read().splitlines()
        except OSError:
            return  # Unreadable .gitignore files are skipped

        patterns = [p.strip() for p in patterns if p.strip() and not p.strip().startswith("#")]
        if patterns:
            self._specs[base_path] = pathspec.GitIgnoreSpec.from_lines(patterns)

    def is_ignored(self, file_path: Path) -> bool:
        """
        Check if a file is ignored by any applicable .gitignore.

        Args:
            file_path: Absolute path to the file

        Returns:
            True if the file should be ignored
        """
        file_path = file_path.resolve()

        # Most specific .gitignore first
        for base_path, spec in sorted(
            self._specs.items(),
            key=lambda x: len(x[0].parts),
            reverse=True,
        ):
            try:
                rel_path = normalize_path(str(file_path.relative_to(base_path)))
            except ValueError:
                continue  # File is not under this base path
            if spec.match_file(rel_path):
                return True

        return False


class SourceBundler:
    """
    Collects infrastructure files from a directory into one text blob.

    Filters by extension, size, exclude globs, .gitignore and binary content.
    Files are emitted in sorted relative-path order so the blob, and with it
    alias numbering, is deterministic.
    """

    def __init__(
        self,
        root_path: Path,
        include_extensions: set[str] | None = None,
        exclude_globs: set[str] | None = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        respect_gitignore: bool = True,
    ):
        """
        Initialize the bundler.

        Args:
            root_path: Directory to bundle
            include_extensions: File extensions to include (default: IaC extensions)
            exclude_globs: Glob patterns to exclude (default: .git, .terraform)
            max_file_bytes: Maximum file size in bytes (default: 1MB)
            respect_gitignore: Whether to respect .gitignore files (default: True)
        """
        self.root_path = root_path.resolve()
        self.include_extensions = (
            {e.lower() for e in include_extensions}
            if include_extensions is not None
            else DEFAULT_INCLUDE_EXTENSIONS.copy()
        )
        self.exclude_globs = (
            exclude_globs if exclude_globs is not None else DEFAULT_EXCLUDE_GLOBS.copy()
        )
        self.max_file_bytes = max_file_bytes
        self.respect_gitignore = respect_gitignore

        self._gitignore: GitIgnoreParser | None = None
        if respect_gitignore:
            self._gitignore = GitIgnoreParser(self.root_path)

        self._exclude_spec = pathspec.GitIgnoreSpec.from_lines(sorted(self.exclude_globs))

        self.stats = BundleStats()

    def scan(self) -> list[SourceFile]:
        """
        Find the files to bundle.

        Returns:
            SourceFile objects sorted by relative path
        """
        found: list[SourceFile] = []

        for file_path in self._walk_files():
            self.stats.files_scanned += 1
            rel_path = normalize_path(str(file_path.relative_to(self.root_path)))

            if self._exclude_spec.match_file(rel_path):
                self.stats.files_skipped_glob += 1
                continue

            if self._gitignore and self._gitignore.is_ignored(file_path):
                self.stats.files_skipped_gitignore += 1
                continue

            if file_path.suffix.lower() not in self.include_extensions:
                self.stats.files_skipped_extension += 1
                continue

            try:
                size = file_path.stat().st_size
            except OSError:
                self.stats.files_unreadable += 1
                continue

            if size > self.max_file_bytes:
                self.stats.files_skipped_size += 1
                continue

            if is_binary_file(file_path):
                self.stats.files_skipped_binary += 1
                continue

            found.append(SourceFile(path=file_path, relative_path=rel_path, size_bytes=size))

        found.sort(key=lambda f: f.relative_path)
        return found

    def bundle(self) -> SourceBundle:
        """
        Build the multi-file blob.

        Returns:
            SourceBundle whose text starts with the multi-file banner, or the
            no-files message if nothing qualified
        """
        sections = []
        included: list[SourceFile] = []

        for source in self.scan():
            try:
                content, encoding = read_file_safe(source.path)
            except OSError:
                self.stats.files_unreadable += 1
                continue

            source.encoding = encoding
            sections.append(f"{file_header(source.relative_path)}\n{content}")
            included.append(source)
            self.stats.files_included += 1
            self.stats.total_bytes_included += source.size_bytes

        if not included:
            return SourceBundle(text=NO_FILES_MESSAGE, stats=self.stats)

        text = f"{MULTI_FILE_BANNER}\n\n" + "\n\n".join(sections)
        return SourceBundle(text=text.strip(), files=included, stats=self.stats)

    def _walk_files(self) -> Generator[Path, None, None]:
        """
        Walk the directory and yield file paths.

        Symlinks and .git directories are skipped. Directories are processed
        in sorted order for deterministic traversal.
        """
        dirs_to_process = [self.root_path]

        while dirs_to_process:
            current_dir = dirs_to_process.pop()

            try:
                with os.scandir(current_dir) as entries:
                    entries_list = sorted(entries, key=lambda e: e.name)
            except OSError:
                continue

            dirs_to_add = []
            for entry in entries_list:
                try:
                    if entry.is_symlink():
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        if entry.name in {".git", ".terraform"}:
                            continue
                        dirs_to_add.append(Path(entry.path))
                    elif entry.is_file(follow_symlinks=False):
                        yield Path(entry.path)
                except OSError:
                    continue

            # Reverse so pop() returns them in sorted order
            dirs_to_process.extend(reversed(dirs_to_add))


def bundle_file(file_path: Path) -> SourceBundle:
    """
    Wrap a single file in its sentinel header.

    Raises:
        SourceError: If the file cannot be read
    """
    try:
        content, encoding = read_file_safe(file_path)
        size = file_path.stat().st_size
    except OSError as e:
        raise SourceError(f"Failed to read {file_path}: {e}") from e

    source = SourceFile(
        path=file_path.resolve(),
        relative_path=file_path.name,
        size_bytes=size,
        encoding=encoding,
    )
    stats = BundleStats(
        files_scanned=1,
        files_included=1,
        total_bytes_included=size,
    )
    return SourceBundle(text=f"{file_header(file_path.name)}\n{content}", files=[source], stats=stats)


def bundle_sources(
    path: Path,
    include_extensions: set[str] | None = None,
    exclude_globs: set[str] | None = None,
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    respect_gitignore: bool = True,
) -> SourceBundle:
    """
    Bundle a file or a directory into one text blob.

    Args:
        path: File or directory
        include_extensions: Extensions to include when walking a directory
        exclude_globs: Glob patterns to exclude when walking a directory
        max_file_bytes: Maximum file size when walking a directory
        respect_gitignore: Whether to respect .gitignore when walking a directory

    Returns:
        SourceBundle with the text, included files and statistics

    Raises:
        SourceError: If the path does not exist or cannot be read
    """
    if not path.exists():
        raise SourceError(f"Path does not exist: {path}")

    if path.is_file():
        return bundle_file(path)

    bundler = SourceBundler(
        root_path=path,
        include_extensions=include_extensions,
        exclude_globs=exclude_globs,
        max_file_bytes=max_file_bytes,
        respect_gitignore=respect_gitignore,
    )
    return bundler.bundle()
