import customtkinter as ctk
from services.recurring_service import RecurringService
from models.recurring_rule import RecurringRule
from utils.constants import (
    CATEGORIES_BY_TYPE, DAYS_OF_WEEK, FREQUENCIES, LAST_DAY_OF_MONTH,
)
from utils.date_helpers import format_date, parse_date, today

_DOM_CHOICES = ["Start date"] + [str(i) for i in range(1, 32)] + ["Last"]


class RecurringForm(ctk.CTkToplevel):
    """Add or edit a recurring rule. Dates are entered as YYYY-MM-DD."""

    def __init__(
        self,
        master,
        recurring_service: RecurringService,
        rule: RecurringRule | None = None,
        **kwargs,
    ):
        super().__init__(master, **kwargs)
        self._svc = recurring_service
        self._rule = rule
        self.saved = False

        self.title("Edit Recurring Rule" if rule else "New Recurring Rule")
        self.resizable(False, False)
        self.grid_columnconfigure(1, weight=1)

        r = 0
        self._add_label("Name:", r)
        self._name_var = ctk.StringVar(value=rule.name if rule else "")
        self._add_entry(self._name_var, r)
        r += 1

        self._add_label("Type:", r)
        self._type_var = ctk.StringVar(value=rule.type if rule else "expense")
        type_frame = ctk.CTkFrame(self, fg_color="transparent")
        type_frame.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="w")
        for t in ("income", "expense"):
            ctk.CTkRadioButton(
                type_frame, text=t.title(),
                variable=self._type_var, value=t,
                command=self._on_type_change,
            ).pack(side="left", padx=4)
        r += 1

        self._add_label("Amount:", r)
        self._amount_var = ctk.StringVar(value=f"{rule.amount:.2f}" if rule else "")
        self._add_entry(self._amount_var, r)
        r += 1

        self._add_label("Category:", r)
        cats = CATEGORIES_BY_TYPE[self._type_var.get()]
        self._cat_var = ctk.StringVar(value=rule.category if rule else cats[0])
        self._cat_combo = ctk.CTkComboBox(
            self, values=cats, variable=self._cat_var, width=220, state="readonly"
        )
        self._cat_combo.grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        self._add_label("Note:", r)
        self._note_var = ctk.StringVar(value=rule.note if rule else "")
        self._add_entry(self._note_var, r)
        r += 1

        self._add_label("Frequency:", r)
        self._freq_var = ctk.StringVar(value=rule.frequency if rule else "monthly")
        ctk.CTkComboBox(
            self, values=FREQUENCIES, variable=self._freq_var,
            width=220, state="readonly", command=self._on_freq_change,
        ).grid(row=r, column=1, padx=(0, 16), pady=4, sticky="ew")
        r += 1

        # Per-frequency fields
        self._detail_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._detail_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=2, sticky="ew")
        r += 1
        self._interval_var = ctk.StringVar(
            value=str(rule.custom_interval_days) if rule else "1"
        )
        selected = set(rule.weekdays or ()) if rule else set()
        self._weekday_vars = [
            ctk.BooleanVar(value=(i + 1) in selected) for i in range(7)
        ]
        dom_init = "Start date"
        if rule and rule.day_of_month is not None:
            dom_init = "Last" if rule.day_of_month == LAST_DAY_OF_MONTH else str(rule.day_of_month)
        self._dom_var = ctk.StringVar(value=dom_init)
        self._refresh_detail_fields()

        self._add_label("Start Date:", r)
        self._start_var = ctk.StringVar(
            value=format_date(rule.start_date) if rule else format_date(today())
        )
        self._add_entry(self._start_var, r, placeholder="YYYY-MM-DD")
        r += 1

        self._add_label("End Date:", r)
        self._end_var = ctk.StringVar(
            value=format_date(rule.end_date) if rule and rule.end_date else ""
        )
        self._add_entry(self._end_var, r, placeholder="optional")
        r += 1

        self._error_var = ctk.StringVar()
        ctk.CTkLabel(
            self, textvariable=self._error_var,
            text_color="#F44336", wraplength=280, anchor="w"
        ).grid(row=r, column=0, columnspan=2, padx=16, pady=(0, 4), sticky="ew")
        r += 1

        btn_frame = ctk.CTkFrame(self, fg_color="transparent")
        btn_frame.grid(row=r, column=0, columnspan=2, padx=16, pady=(4, 16), sticky="ew")
        ctk.CTkButton(
            btn_frame, text="Cancel", width=90,
            fg_color="transparent", border_width=1,
            text_color=("gray10", "gray90"),
            command=self.destroy,
        ).pack(side="left")
        if rule:
            ctk.CTkButton(
                btn_frame, text="Delete", width=80,
                fg_color="#F44336", hover_color="#D32F2F",
                command=self._on_delete,
            ).pack(side="left", padx=8)
        ctk.CTkButton(btn_frame, text="Save", width=90, command=self._on_save).pack(side="right")

        self.transient(master)
        self.grab_set()
        self._center()

    def _add_label(self, text, row):
        ctk.CTkLabel(self, text=text).grid(
            row=row, column=0, padx=(16, 8), pady=4, sticky="e"
        )

    def _add_entry(self, var, row, placeholder=None):
        ctk.CTkEntry(
            self, textvariable=var, width=220, placeholder_text=placeholder,
        ).grid(row=row, column=1, padx=(0, 16), pady=4, sticky="ew")

    def _on_type_change(self):
        cats = CATEGORIES_BY_TYPE[self._type_var.get()]
        self._cat_combo.configure(values=cats)
        self._cat_var.set(cats[0])

    def _on_freq_change(self, value=None):
        self._refresh_detail_fields()

    def _refresh_detail_fields(self):
        for w in self._detail_frame.winfo_children():
            w.destroy()

        freq = self._freq_var.get()
        if freq == "custom":
            ctk.CTkLabel(self._detail_frame, text="Every (days):").grid(
                row=0, column=0, padx=(0, 8), sticky="e"
            )
            ctk.CTkEntry(
                self._detail_frame, textvariable=self._interval_var, width=60,
            ).grid(row=0, column=1, sticky="w")

        elif freq == "weekly":
            ctk.CTkLabel(self._detail_frame, text="On:").grid(
                row=0, column=0, padx=(0, 8), sticky="e"
            )
            for i, name in enumerate(DAYS_OF_WEEK):
                ctk.CTkCheckBox(
                    self._detail_frame, text=name, width=52,
                    variable=self._weekday_vars[i],
                ).grid(row=0, column=i + 1, padx=1, sticky="w")

        elif freq == "monthly":
            ctk.CTkLabel(self._detail_frame, text="Day of Month:").grid(
                row=0, column=0, padx=(0, 8), sticky="e"
            )
            ctk.CTkComboBox(
                self._detail_frame, values=_DOM_CHOICES,
                variable=self._dom_var, width=110, state="readonly",
            ).grid(row=0, column=1, sticky="w")

    def _on_save(self):
        freq = self._freq_var.get()

        try:
            amount = float(self._amount_var.get())
        except ValueError:
            self._error_var.set("Invalid amount.")
            return

        start_date = parse_date(self._start_var.get().strip())
        if start_date is None:
            self._error_var.set("Invalid start date.")
            return
        end_date = None
        if self._end_var.get().strip():
            end_date = parse_date(self._end_var.get().strip())
            if end_date is None:
                self._error_var.set("Invalid end date.")
                return

        interval = 1
        weekdays = None
        day_of_month = None
        if freq == "custom":
            try:
                interval = int(self._interval_var.get())
            except ValueError:
                self._error_var.set("Interval must be a whole number of days.")
                return
        elif freq == "weekly":
            chosen = tuple(i + 1 for i, v in enumerate(self._weekday_vars) if v.get())
            weekdays = chosen or None
        elif freq == "monthly":
            dom_str = self._dom_var.get()
            if dom_str == "Last":
                day_of_month = LAST_DAY_OF_MONTH
            elif dom_str.isdigit():
                day_of_month = int(dom_str)

        fields = dict(
            name=self._name_var.get(),
            type_=self._type_var.get(),
            amount=amount,
            category=self._cat_var.get(),
            frequency=freq,
            start_date=start_date,
            custom_interval_days=interval,
            weekdays=weekdays,
            day_of_month=day_of_month,
            end_date=end_date,
            note=self._note_var.get().strip(),
        )
        try:
            if self._rule:
                self._svc.update(self._rule.id, is_active=self._rule.is_active, **fields)
            else:
                self._svc.create(**fields)
            self.saved = True
            self.destroy()
        except ValueError as e:
            self._error_var.set(str(e))

    def _on_delete(self):
        self._svc.delete(self._rule.id)
        self.saved = True
        self.destroy()

    def _center(self):
        self.update_idletasks()
        mw = self.master.winfo_x() + self.master.winfo_width() // 2
        mh = self.master.winfo_y() + self.master.winfo_height() // 2
        w, h = self.winfo_reqwidth(), self.winfo_reqheight()
        self.geometry(f"+{mw - w//2}+{mh - h//2}")
