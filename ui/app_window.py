import customtkinter as ctk
from services.generation_engine import GenerationResult
from services.recurring_service import RecurringService
from ui.components.alert_banner import AlertBanner
from ui.tabs.recurring_tab import RecurringTab
from utils.constants import APP_NAME, APP_WIDTH, APP_HEIGHT, SEVERITY_COLORS


class AppWindow(ctk.CTk):
    def __init__(
        self,
        recurring_service: RecurringService,
        startup_result: GenerationResult | None = None,
        currency_symbol: str = "$",
        **kwargs,
    ):
        super().__init__(**kwargs)
        self._recurring_svc = recurring_service
        self._startup_result = startup_result
        self._currency_symbol = currency_symbol

        self.title(APP_NAME)
        self.minsize(APP_WIDTH, APP_HEIGHT)
        self.geometry(f"{APP_WIDTH}x{APP_HEIGHT}")

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        self._build_banner_area()
        self._build_tabs()

        self.after(300, self._show_startup_banner)

    def _build_banner_area(self):
        self._banner_frame = ctk.CTkFrame(self, fg_color="transparent", height=0)
        self._banner_frame.grid(row=0, column=0, sticky="ew", padx=8)

    def _build_tabs(self):
        self._tabview = ctk.CTkTabview(self)
        self._tabview.grid(row=1, column=0, sticky="nsew", padx=8, pady=(0, 8))
        tab = self._tabview.add("Recurring")
        tab.grid_columnconfigure(0, weight=1)
        tab.grid_rowconfigure(0, weight=1)
        self._recurring_tab = RecurringTab(
            tab, self._recurring_svc,
            currency_symbol=self._currency_symbol,
        )
        self._recurring_tab.grid(row=0, column=0, sticky="nsew")

    def _show_startup_banner(self):
        for w in self._banner_frame.winfo_children():
            w.destroy()
        result = self._startup_result
        if result is not None and not result.ok:
            banner = AlertBanner(
                self._banner_frame,
                message="Error setting up recurring items",
                color=SEVERITY_COLORS["error"],
            )
            banner.pack(fill="x", pady=2)
        count = len(result.occurrences) if result is not None else 0
        if count:
            banner = AlertBanner(
                self._banner_frame,
                message=f"{count} recurring transaction{'s' if count != 1 else ''} "
                        f"were automatically added.",
                color=SEVERITY_COLORS["info"],
            )
            banner.pack(fill="x", pady=2)
        reminder = self._recurring_svc.upcoming_reminder()
        if reminder:
            banner = AlertBanner(
                self._banner_frame,
                message=reminder,
                color=SEVERITY_COLORS["warning"],
            )
            banner.pack(fill="x", pady=2)
