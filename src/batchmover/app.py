import tkinter as tk
from tkinter import messagebox

from batchmover import __version__
from batchmover.ui.main_window import MainWindow

DEFAULT_GEOMETRY = "900x700"


def _restore_geometry(root: tk.Tk, geometry: str) -> None:
    try:
        root.geometry(geometry or DEFAULT_GEOMETRY)
    except tk.TclError:
        # Saved value is not a valid Tk geometry string
        root.geometry(DEFAULT_GEOMETRY)


def main() -> int:
    try:
        root = tk.Tk()
        root.title(f"Batch File Mover {__version__}")
        root.minsize(640, 480)
        app = MainWindow(root)
        _restore_geometry(root, app.settings.window_geometry)
        # Errors raised inside Tk callbacks go to the log pane instead of stderr
        root.report_callback_exception = app.report_callback_exception
        app.pack(fill=tk.BOTH, expand=True)
        root.mainloop()
        return 0
    except KeyboardInterrupt:
        return 130
    except Exception as exc:  # noqa: BLE001
        try:
            messagebox.showerror("Fatal Error", f"{type(exc).__name__}: {exc}")
        except tk.TclError:
            pass
        raise


if __name__ == "__main__":
    raise SystemExit(main())
