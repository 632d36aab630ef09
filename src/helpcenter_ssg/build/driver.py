"""
Build Driver

Runs one complete static build:

    1. build the client bundle
    2. read the bundle's asset tags from the client shell
    3. enumerate routes
    4. render, embed state and write every route in batches
    5. emit sitemap.xml / robots.txt
    6. sanity-check the entry page, category pages and SEO files
    7. log a summary

``build()`` returns a process exit code. Source, client build and sanity
failures are fatal; per-route render failures are not, unless nothing
rendered at all.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from pathlib import Path
from typing import List, Optional, Union

from ..config import BuildConfiguration, Settings
from ..content.loaders import DataLoaders
from ..content.source import ContentSource
from ..core.errors import ClientBuildFailed, SanityCheckFailed, SourceUnavailable
from ..hydration.bridge import embed
from ..render.document import ClientAssets, extract_client_assets, render_document
from ..render.head import validate_head
from ..render.models import RenderSnapshot
from ..render.renderer import ServerRenderer
from ..routing.enumerator import enumerate_routes
from ..routing.models import RouteDescriptor, RouteKind
from .sanity import check_output
from .scheduler import BatchRenderScheduler, BuildReport
from .seo_files import build_robots, build_sitemap
from .writer import list_html_files, output_relpath, write_page, write_text_file

logger = logging.getLogger("ssg.build")

SUMMARY_FILE_LIMIT = 10


class BuildDriver:
    """Orchestrates a full prerender build into ``dist_dir``."""

    def __init__(
        self,
        config: BuildConfiguration,
        source: ContentSource,
        dist_dir: Union[str, Path] = "dist",
        client_build_command: str = "",
        sanity_marker: str = "modoPAG",
        sanity_min_bytes: int = 1000,
        project_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """
        Parameters
        ----------
        config : BuildConfiguration
            Frozen configuration shared by every component.

        source : ContentSource
            Content provider. The caller owns its lifecycle.

        dist_dir : str | Path
            Output directory, also where the client build writes its shell.

        client_build_command : str
            Shell-style command that builds the client bundle. Empty skips
            the step.

        project_dir : Optional[str | Path]
            Working directory for the client build command.
        """
        self.config = config
        self.source = source
        self.dist_dir = Path(dist_dir)
        self.client_build_command = client_build_command
        self.sanity_marker = sanity_marker
        self.sanity_min_bytes = sanity_min_bytes
        self.project_dir = Path(project_dir) if project_dir else None

        self.renderer = ServerRenderer(config)
        self.scheduler = BatchRenderScheduler(batch_size=config.batch_size)
        self.report: Optional[BuildReport] = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source: ContentSource,
        config: Optional[BuildConfiguration] = None,
        skip_client_build: bool = False,
    ) -> "BuildDriver":
        return cls(
            config=config or BuildConfiguration.from_settings(settings),
            source=source,
            dist_dir=settings.dist_dir,
            client_build_command="" if skip_client_build else settings.client_build_command,
            sanity_marker=settings.sanity_marker,
            sanity_min_bytes=settings.sanity_min_bytes,
        )

    def request_stop(self) -> None:
        """Let in-flight renders finish, then stop before the next batch."""
        self.scheduler.request_stop()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def run_client_build(self) -> None:
        """
        Run the client build command.

        Raises
        ------
        ClientBuildFailed
            If the command cannot be started or exits non-zero.
        """
        if not self.client_build_command.strip():
            logger.info("Client build skipped")
            return

        argv = shlex.split(self.client_build_command)
        logger.info("Building client bundle: %s", self.client_build_command)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(self.project_dir) if self.project_dir else None,
            )
        except OSError as exc:
            logger.error("Could not start client build: %s", exc)
            raise ClientBuildFailed(self.client_build_command, 127) from exc

        returncode = await process.wait()
        if returncode != 0:
            raise ClientBuildFailed(self.client_build_command, returncode)

    def load_client_assets(self) -> ClientAssets:
        shell = self.dist_dir / "index.html"
        if not shell.is_file():
            logger.warning("No client shell at %s; pages will carry no bundle tags", shell)
            return ClientAssets()
        assets = extract_client_assets(shell.read_text(encoding="utf-8"))
        logger.info(
            "Client shell: %d stylesheet/preload tags, %d scripts",
            len(assets.css_links),
            len(assets.js_scripts),
        )
        return assets

    async def render_all(self, routes: List[RouteDescriptor], assets: ClientAssets) -> BuildReport:
        loaders = DataLoaders.for_source(self.source)

        async def render_one(route: RouteDescriptor) -> RenderSnapshot:
            return await self.renderer.render_route(route, loaders)

        async def persist(snapshot: RenderSnapshot) -> None:
            if self.config.features.validate_seo:
                for warning in validate_head(snapshot.head_metadata):
                    logger.warning("SEO %s: %s", snapshot.route.path, warning)
            page = embed(snapshot, render_document(snapshot, self.config, assets))
            await asyncio.to_thread(
                write_page,
                self.dist_dir,
                snapshot.route.path,
                page,
                self.config.base_path,
            )

        return await self.scheduler.run(routes, render_one, on_success=persist)

    def write_seo_files(self, routes: List[RouteDescriptor], report: BuildReport) -> None:
        rendered = set(report.rendered_paths)
        listed = [route for route in routes if route.path in rendered]

        if self.config.features.generate_sitemap:
            write_text_file(self.dist_dir, "sitemap.xml", build_sitemap(listed, self.config))
            logger.info("sitemap.xml: %d URLs", len(listed))
        if self.config.features.generate_robots_txt:
            write_text_file(self.dist_dir, "robots.txt", build_robots(self.config))
            logger.info("robots.txt written")

    def expected_files(self, routes: List[RouteDescriptor], report: BuildReport) -> List[str]:
        """Files the sanity check requires besides ``index.html``."""
        rendered = set(report.rendered_paths)
        files = [
            output_relpath(route.path, self.config.base_path)
            for route in routes
            if route.kind is RouteKind.CATEGORY and route.path in rendered
        ]
        if self.config.features.generate_sitemap:
            files.append("sitemap.xml")
        if self.config.features.generate_robots_txt:
            files.append("robots.txt")
        return files

    def log_summary(self, report: BuildReport) -> None:
        logger.info(
            "Prerendered %d routes in %d batches (%d failed)",
            report.succeeded,
            report.batches,
            len(report.failed),
        )
        for failure in report.failed:
            logger.warning("  failed %s: %s", failure.path, failure.reason)
        for name in list_html_files(self.dist_dir, limit=SUMMARY_FILE_LIMIT):
            logger.info("  %s", name)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def build(self) -> int:
        """Run the whole build and return a process exit code."""
        try:
            await self.run_client_build()
            self.dist_dir.mkdir(parents=True, exist_ok=True)
            assets = self.load_client_assets()

            routes = await enumerate_routes(self.source, self.config)
            report = await self.render_all(routes, assets)
            self.report = report

            if report.source_error is not None:
                logger.error("Content source lost during rendering: %s", report.source_error)
                self.log_summary(report)
                return 1
            if report.cancelled:
                logger.warning("Build stopped after %d batches", report.batches)
                self.log_summary(report)
                return 1
            if report.is_fatal:
                logger.error("No route rendered successfully")
                self.log_summary(report)
                return 1

            self.write_seo_files(routes, report)
            check_output(
                self.dist_dir,
                self.sanity_marker,
                self.sanity_min_bytes,
                expected_files=self.expected_files(routes, report),
            )
        except ClientBuildFailed as exc:
            logger.error("%s", exc)
            return 1
        except SourceUnavailable as exc:
            logger.error("Content source unavailable: %s", exc)
            return 1
        except SanityCheckFailed as exc:
            for problem in exc.problems:
                logger.error("Sanity check: %s", problem)
            return 1

        self.log_summary(report)
        return 0
