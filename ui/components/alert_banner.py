import customtkinter as ctk
from utils.constants import SEVERITY_COLORS


class AlertBanner(ctk.CTkFrame):
    """Dismissible colored strip for startup notices (one line of text)."""

    def __init__(self, master, message: str, color: str = SEVERITY_COLORS["info"], **kwargs):
        super().__init__(master, fg_color=color, corner_radius=6, **kwargs)
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text=message, text_color="white", anchor="w", padx=10, pady=6,
        ).grid(row=0, column=0, sticky="ew")
        ctk.CTkButton(
            self, text="✕", width=28, height=24,
            fg_color="transparent", text_color="white",
            command=self.destroy,
        ).grid(row=0, column=1, padx=(0, 4))
