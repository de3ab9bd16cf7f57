from __future__ import annotations

import base64
import subprocess
import threading
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from pypdf import PdfReader
from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver import Chrome
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.print_page_options import PrintOptions
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

# Paper sizes in centimetres (width, height), portrait.
PAGE_SIZES_CM = {
    "a4": (21.0, 29.7),
    "letter": (21.59, 27.94),
}
CM_PER_INCH = 2.54


class SurfaceUnavailableError(RuntimeError):
    """The independent rendering surface could not be opened."""


@dataclass(frozen=True)
class PrintedDocument:
    pdf_path: Path
    page_count: int


def setup_print_driver(headless: bool = True) -> Chrome:
    opts = Options()
    if headless:
        opts.add_argument("--headless=new")
    opts.add_argument("--disable-gpu")
    opts.add_argument("--window-size=1280,1600")
    opts.add_argument("--no-sandbox")
    opts.add_argument("--disable-dev-shm-usage")
    opts.add_argument("--log-level=3")
    opts.add_argument("--disable-logging")
    opts.add_argument("--disable-background-networking")
    opts.add_experimental_option("excludeSwitches", ["enable-logging"])
    # Selenium Manager first, then webdriver_manager's cached driver.
    try:
        return webdriver.Chrome(options=opts)
    except WebDriverException:
        service = Service(ChromeDriverManager().install(), log_output=subprocess.DEVNULL)
        return webdriver.Chrome(service=service, options=opts)


def wait_dom_ready(driver: Any, sec: int = 20) -> None:
    WebDriverWait(driver, sec).until(lambda d: d.execute_script("return document.readyState") == "complete")


def build_print_options(page_format: str, orientation: str, margin_inches: float) -> PrintOptions:
    width, height = PAGE_SIZES_CM.get((page_format or "").lower(), PAGE_SIZES_CM["a4"])
    margin = round(margin_inches * CM_PER_INCH, 3)
    po = PrintOptions()
    po.orientation = "landscape" if orientation == "landscape" else "portrait"
    po.page_width = width
    po.page_height = height
    po.margin_top = margin
    po.margin_bottom = margin
    po.margin_left = margin
    po.margin_right = margin
    po.background = True
    return po


class ChromePrintSurface:
    """
    Headless Chrome window used as the print surface.

    load() writes the self-contained document next to the output and opens it;
    print_document() saves the native print-to-PDF result and schedules the
    window to close after close_delay seconds, whether printing worked or not.
    """

    def __init__(
        self,
        output_dir: str | Path,
        close_delay: float = 3.0,
        print_delay: float = 0.5,
        headless: bool = True,
        driver_factory: Callable[[bool], Any] | None = None,
        log: Callable[[str], None] | None = None,
    ):
        self.output_dir = Path(output_dir)
        self.close_delay = close_delay
        self.print_delay = print_delay
        self.headless = headless
        self.driver_factory = driver_factory or setup_print_driver
        self.log = log
        self.driver: Any = None
        self.document_path: Path | None = None
        self.closed = False
        self._timer: threading.Timer | None = None

    def _log(self, msg: str) -> None:
        if self.log:
            self.log(msg)

    def load(self, document_html: str) -> None:
        try:
            self.driver = self.driver_factory(self.headless)
        except (WebDriverException, OSError, ValueError) as exc:
            raise SurfaceUnavailableError(f"The print window could not be opened: {exc}") from exc

        try:
            staging = self.output_dir / "_print"
            staging.mkdir(parents=True, exist_ok=True)
            self.document_path = staging / f"{uuid.uuid4().hex}.html"
            self.document_path.write_text(document_html, encoding="utf-8")
            self.driver.get(self.document_path.resolve().as_uri())
            wait_dom_ready(self.driver)
        except BaseException:
            # The window is already open; it must not outlive a failed load.
            self.close()
            raise
        self._log(f"PRINT_SURFACE status=loaded file={self.document_path.name}")

    def print_document(self, options: Any, file_name: str) -> PrintedDocument:
        if self.driver is None:
            raise SurfaceUnavailableError("The print window is not open.")
        try:
            if self.print_delay > 0:
                time.sleep(self.print_delay)
            po = build_print_options(options.page_format, options.orientation, options.margin_inches)
            pdf_b64 = self.driver.print_page(po)
            pdf_path = self.output_dir / file_name
            pdf_path.write_bytes(base64.b64decode(pdf_b64))
            page_count = len(PdfReader(str(pdf_path)).pages)
        finally:
            self.schedule_close()
        self._log(f"PRINT_SURFACE status=printed pages={page_count} file={pdf_path.name}")
        return PrintedDocument(pdf_path=pdf_path, page_count=page_count)

    def schedule_close(self) -> None:
        if self.close_delay <= 0:
            self.close()
            return
        self._timer = threading.Timer(self.close_delay, self.close)
        self._timer.daemon = True
        self._timer.start()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.driver is not None:
            try:
                self.driver.quit()
            except WebDriverException as exc:
                self._log(f"PRINT_SURFACE status=close_failed error={exc}")
        if self.document_path is not None:
            self.document_path.unlink(missing_ok=True)
        self._log("PRINT_SURFACE status=closed")
