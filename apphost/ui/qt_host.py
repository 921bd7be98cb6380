"""
PySide6 implementation of the host platform port.

- QtHostPlatform: application-level calls (ready signal, windows, menu, shell)
- HostWindow: QMainWindow hosting QML content, emitting native window events
- ContentBridge: QObject exposed to QML as ``host`` for IPC
"""
from dataclasses import astuple
from typing import Any, Callable, Dict, List, Optional

import shiboken6
from PySide6.QtCore import QLocale, QObject, QTimer, QUrl, Qt, Signal as QtSignal, Slot
from PySide6.QtGui import QCursor, QDesktopServices, QGuiApplication, QKeySequence
from PySide6.QtQuickWidgets import QQuickWidget
from PySide6.QtWidgets import QApplication, QDockWidget, QMainWindow, QPlainTextEdit, QWidget
from loguru import logger

from apphost.core.events import Signal
from apphost.core.ipc import IpcMessageEvent, IpcRouter
from apphost.core.placement import WindowOptions, nearest_display
from apphost.core.platform import MenuItem, NativeEvent, Point, Rect, WindowEvents


ROLE_LABELS = {
    "help": "&Help",
    "toggledevtools": "Toggle Developer Tools",
}

ROLE_SHORTCUTS = {
    "toggledevtools": "Ctrl+Shift+I",
}


def _rect(geometry) -> Rect:
    return Rect(geometry.x(), geometry.y(), geometry.width(), geometry.height())


class ContentBridge(QObject):
    """
    Bridge between QML content and the host process.
    """

    # channel, payload (host -> content)
    message = QtSignal(str, "QVariant")

    def __init__(self, window: "HostWindow"):
        super().__init__(window)
        self._window = window

    @Slot(str, "QVariant")
    def send(self, channel: str, args: Any):
        """Inbound IPC from content; ``args`` is a JS array or a single value."""
        if args is None:
            args = []
        elif not isinstance(args, (list, tuple)):
            args = [args]
        self._window.deliver_ipc(channel, list(args))

    @Slot(str)
    def openWindow(self, url: str):
        self._window.request_new_window(url)


class HostWindow(QMainWindow):
    """
    Top-level window. Created hidden; emits ``ready-to-show`` once its
    content has loaded (or on the first event loop turn when it has none).
    """

    def __init__(self, platform: "QtHostPlatform", options: WindowOptions):
        super().__init__()
        self._platform = platform
        self._events: Dict[str, Signal] = {}
        self._closed = False
        self._ready_to_show_sent = False

        self.setAttribute(Qt.WidgetAttribute.WA_DeleteOnClose)
        self.setWindowTitle(options.title)
        self.setMinimumSize(options.min_width, options.min_height)
        self.setGeometry(options.x, options.y, options.width, options.height)

        self.bridge = ContentBridge(self)
        self.content: Optional[QQuickWidget] = None
        self.setCentralWidget(QWidget())

        self._dev_log = QPlainTextEdit()
        self._dev_log.setReadOnly(True)
        self.dev_tools = QDockWidget("Developer Tools", self)
        self.dev_tools.setObjectName("DeveloperToolsDock")
        self.dev_tools.setWidget(self._dev_log)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self.dev_tools)
        self.dev_tools.hide()

        QTimer.singleShot(0, self._maybe_ready_to_show)

    # === Native window port ===

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        if event not in self._events:
            self._events[event] = Signal(f"HostWindow.{event}")
        self._events[event].connect(callback)

    def maximize(self) -> None:
        self.setWindowState(self.windowState() | Qt.WindowState.WindowMaximized)

    def is_maximized(self) -> bool:
        return self.isMaximized()

    def get_bounds(self) -> Rect:
        return _rect(self.geometry())

    def is_destroyed(self) -> bool:
        return self._closed or not shiboken6.isValid(self)

    def load_url(self, url: str) -> None:
        if self.content is None:
            self.content = QQuickWidget()
            self.content.setResizeMode(QQuickWidget.ResizeMode.SizeRootObjectToView)
            self.content.rootContext().setContextProperty("host", self.bridge)
            self.content.statusChanged.connect(self._on_content_status)
            self.setCentralWidget(self.content)
        self.content.setSource(QUrl.fromUserInput(url))

    def send(self, channel: str, payload: Any) -> None:
        self._dev_log.appendPlainText(f"-> {channel}: {payload!r}")
        self.bridge.message.emit(channel, payload)

    # === Content-originated requests ===

    def deliver_ipc(self, channel: str, args: List[Any]) -> None:
        self._dev_log.appendPlainText(f"<- {channel}: {args!r}")
        self._platform.ipc.emit(channel, IpcMessageEvent(channel, sender=self), *args)

    def request_new_window(self, url: str) -> None:
        event = NativeEvent(url=url)
        self._emit(WindowEvents.NEW_WINDOW, event, url)
        if not event.default_prevented:
            logger.debug(f"Unhandled new-window request: {url}")

    # === Menu / dev tools ===

    def apply_menu(self, template: List[MenuItem]) -> None:
        menu_bar = self.menuBar()
        menu_bar.clear()
        self._build_menu(menu_bar, template)

    def toggle_dev_tools(self) -> None:
        self.dev_tools.setVisible(self.dev_tools.isHidden())

    def _build_menu(self, parent, items: List[MenuItem]) -> None:
        for item in items:
            text = item.label or ROLE_LABELS.get(item.role, item.role or "")
            if item.submenu:
                self._build_menu(parent.addMenu(text), item.submenu)
                continue
            action = parent.addAction(text)
            if item.role in ROLE_SHORTCUTS:
                action.setShortcut(QKeySequence(ROLE_SHORTCUTS[item.role]))
            if item.role == "toggledevtools":
                action.triggered.connect(self.toggle_dev_tools)

    # === Qt events ===

    def closeEvent(self, event):
        self._emit(WindowEvents.CLOSE, event)
        super().closeEvent(event)
        if event.isAccepted():
            self._closed = True
            self._emit(WindowEvents.CLOSED)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._emit(WindowEvents.RESIZE)

    def moveEvent(self, event):
        super().moveEvent(event)
        self._emit(WindowEvents.MOVE)

    def _emit(self, event: str, *args) -> None:
        signal = self._events.get(event)
        if signal is not None:
            signal.emit(*args)

    def _maybe_ready_to_show(self) -> None:
        if self.content is not None and self.content.status() == QQuickWidget.Status.Loading:
            return  # _on_content_status fires it
        self._emit_ready_to_show()

    def _on_content_status(self, status) -> None:
        if status == QQuickWidget.Status.Error:
            for error in self.content.errors():
                logger.error(f"Content error: {error.toString()}")
        if status != QQuickWidget.Status.Loading:
            self._emit_ready_to_show()

    def _emit_ready_to_show(self) -> None:
        if self._ready_to_show_sent or self._closed:
            return
        self._ready_to_show_sent = True
        self._emit(WindowEvents.READY_TO_SHOW)


class QtScreen:
    def get_cursor_screen_point(self) -> Point:
        pos = QCursor.pos()
        return pos.x(), pos.y()

    def displays(self) -> List[Rect]:
        return [_rect(screen.geometry()) for screen in QGuiApplication.screens()]

    def get_display_nearest_point(self, point: Point) -> Rect:
        display = nearest_display(point, self.displays())
        if display is None:
            raise RuntimeError("No screens available")
        return display


class QtKeyboardLayout:
    """
    Keyboard layout notifications from the platform input method.

    Qt reports layout changes as input locale changes and exposes no
    scan-code map, so ``get_key_map`` only carries the input direction.
    """

    def __init__(self):
        self._changed = Signal("KeyboardLayoutChanged")
        self._connected = False

    def on_did_change_keyboard_layout(self, callback: Callable[[], None]) -> None:
        if not self._connected:
            QGuiApplication.inputMethod().localeChanged.connect(self._on_locale_changed)
            self._connected = True
        self._changed.connect(callback)

    def off_did_change_keyboard_layout(self, callback: Callable[[], None]) -> None:
        self._changed.disconnect(callback)

    def get_current_keyboard_layout(self) -> Dict[str, Any]:
        locale = QGuiApplication.inputMethod().locale()
        return {
            "id": locale.name(),
            "language": QLocale.languageToString(locale.language()),
        }

    def get_key_map(self) -> Dict[str, Any]:
        direction = QGuiApplication.inputMethod().inputDirection()
        return {"direction": "rtl" if direction == Qt.LayoutDirection.RightToLeft else "ltr"}

    def _on_locale_changed(self) -> None:
        logger.debug("Keyboard layout changed")
        self._changed.emit()


class QtHostPlatform:
    """
    Host platform backed by a QApplication.

    The ready signal fires on the first turn of the event loop. Listeners
    registered after that are called back on the next turn with the same
    platform info.
    """

    def __init__(self, app: QApplication):
        self.app = app
        self.screen = QtScreen()
        self.keyboard = QtKeyboardLayout()
        self.ipc = IpcRouter()
        self._ready = Signal("AppReady")
        self._ready_info: Optional[Dict[str, Any]] = None
        self._menu_template: List[MenuItem] = []
        self._windows: List[HostWindow] = []

        QTimer.singleShot(0, self._emit_ready)

    @property
    def windows(self) -> List[HostWindow]:
        return list(self._windows)

    def on_ready(self, callback: Callable[[Dict[str, Any]], Any]) -> None:
        if self._ready_info is not None:
            info = self._ready_info
            QTimer.singleShot(0, lambda: callback(info))
            return
        self._ready.connect(callback)

    def platform_info(self) -> Dict[str, Any]:
        return {
            "platform": QGuiApplication.platformName(),
            "application": self.app.applicationName(),
            "screens": [
                {
                    "name": screen.name(),
                    "geometry": list(astuple(_rect(screen.geometry()))),
                    "devicePixelRatio": screen.devicePixelRatio(),
                }
                for screen in QGuiApplication.screens()
            ],
        }

    def create_window(self, options: WindowOptions) -> HostWindow:
        window = HostWindow(self, options)
        if self._menu_template:
            window.apply_menu(self._menu_template)
        self._windows.append(window)
        window.on(WindowEvents.CLOSED, lambda *args: self._forget(window))
        return window

    def on_about_to_quit(self, callback: Callable[[], Any]) -> None:
        self.app.aboutToQuit.connect(callback)

    def open_external(self, url: str) -> None:
        if not QDesktopServices.openUrl(QUrl(url)):
            logger.warning(f"Could not open external URL: {url}")

    def set_application_menu(self, template: List[MenuItem]) -> None:
        self._menu_template = list(template)
        for window in self._windows:
            window.apply_menu(self._menu_template)

    def _emit_ready(self) -> None:
        self._ready_info = self.platform_info()
        logger.info("Platform ready")
        self._ready.emit(self._ready_info)

    def _forget(self, window: HostWindow) -> None:
        if window in self._windows:
            self._windows.remove(window)
