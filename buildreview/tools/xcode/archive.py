"""Packaging of an Xcode archive into distributable artifacts.

The IPA is built by hand rather than through ``xcodebuild -exportArchive``,
which does not handle WatchKit apps. Expanded, the IPA holds::

    Payload/            <- Products/Applications of the archive
    WatchKitSupport/    (when present)
    SwiftSupport/       (when present)

The staging directory only holds symbolic links; they are followed while
zipping so the package stores real directories.
"""

import os
import shutil
import zipfile
from pathlib import Path

from buildreview.core.exceptions.errors import BuildActionFailure
from buildreview.core.logger.logger import get_logger

logger = get_logger(__name__)

SUPPORT_DIRECTORIES = ("WatchKitSupport", "SwiftSupport")
BUNDLE_EXTENSIONS = (".app", ".dSYM")
STAGING_DIRECTORY = "archiving"


def zip_tree(source: Path, zip_path: Path, root_name: str | None = None) -> Path:
    """Zip a directory tree, following symbolic links.

    Args:
        source: Directory to compress.
        zip_path: Zip file to create.
        root_name: Top level directory name inside the zip; entries are
            stored relative to ``source`` when omitted.

    Returns:
        The created zip path.
    """
    def arcname(path: str) -> str:
        relative = os.path.relpath(path, source)
        if root_name:
            relative = os.path.join(root_name, relative) if relative != "." else root_name
        return relative

    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for dirpath, dirnames, filenames in os.walk(source, followlinks=True):
            dirnames.sort()
            name = arcname(dirpath)
            if name != ".":
                archive.write(dirpath, name)
            for filename in sorted(filenames):
                full_path = os.path.join(dirpath, filename)
                archive.write(full_path, arcname(full_path))
    return zip_path


class ArchiveAssembler:
    """Builds the artifacts of a completed ``xcodebuild archive``."""

    def __init__(self, archive_path: Path, output_directory: Path, package_name: str) -> None:
        """
        Args:
            archive_path: The ``.xcarchive`` produced by xcodebuild.
            output_directory: Where artifacts (and the staging directory) go.
            package_name: Base name of the IPA.
        """
        self.archive_path = archive_path
        self.output_directory = output_directory
        self.package_name = package_name

    @property
    def applications_path(self) -> Path:
        return self.archive_path / "Products" / "Applications"

    @property
    def dsyms_path(self) -> Path:
        return self.archive_path / "dSYMs"

    def assemble(self) -> list[Path]:
        """Build the IPA, then one zip per application and debug symbol bundle."""
        artifacts = [self.build_package()]
        artifacts.extend(self.zip_bundles())
        return artifacts

    def build_package(self) -> Path:
        """Build the ``Payload`` rooted IPA.

        Raises:
            BuildActionFailure: If the archive holds no application products.
        """
        if not self.applications_path.is_dir():
            raise BuildActionFailure(
                f"No application products found in {self.archive_path}",
                action="archive",
            )

        staging = self.output_directory / STAGING_DIRECTORY
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True)

        (staging / "Payload").symlink_to(self.applications_path, target_is_directory=True)
        for support_type in SUPPORT_DIRECTORIES:
            support_path = self.archive_path / support_type
            if support_path.exists():
                (staging / support_type).symlink_to(support_path, target_is_directory=True)

        ipa_path = self.output_directory / f"{self.package_name}.ipa"
        logger.info(f"Packaging {ipa_path}")
        return zip_tree(staging, ipa_path)

    def bundles(self) -> list[Path]:
        """Application and debug symbol bundles of the archive."""
        candidates: list[Path] = []
        for directory in (self.dsyms_path, self.applications_path):
            if directory.is_dir():
                candidates.extend(sorted(directory.iterdir()))
        return [path for path in candidates if path.suffix in BUNDLE_EXTENSIONS]

    def zip_bundles(self) -> list[Path]:
        """Zip each bundle on its own, rooted at the bundle directory."""
        zipped = []
        for bundle in self.bundles():
            zip_path = self.output_directory / f"{bundle.name}.zip"
            logger.info(f"Compressing {bundle.name}")
            zipped.append(zip_tree(bundle, zip_path, root_name=bundle.name))
        return zipped
