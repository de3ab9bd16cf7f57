# -*- coding: utf-8 -*-
import threading
import time
from pathlib import Path

import tkinter as tk
from tkinter import filedialog, messagebox, ttk

from bid_conditions.services.catalog_parser import ClauseRecord
from bid_conditions.services.document_preview import ProjectInfo
from bid_conditions.services.export_pipeline import DocumentRegionNotFound, ExportError, ExportOptions
from bid_conditions.services.filter_cascade import CascadeLevel
from bid_conditions.services.print_surface import SurfaceUnavailableError
from bid_conditions.services.risk_gate import GateOutcome
from bid_conditions.services.section_grouper import section_title
from bid_conditions.services.selection_set import SelectedClause, UploadedFile
from bid_conditions.services.validation_engine import format_file_size
from bid_conditions.services.session import BidConditionsSession
from bid_conditions.services.ux_guidance import build_corrective_guidance

PANEL_BG = "#F4F6F8"
ACCENT = "#1F6FEB"
IMPORTANT_FG = "#DC2626"
LEVEL_LABELS = (
    (CascadeLevel.WORK_TYPE, "Work type:"),
    (CascadeLevel.CATEGORY, "Category:"),
    (CascadeLevel.SUB_CATEGORY, "Sub-category:"),
    (CascadeLevel.TAG, "Tag:"),
)


class ClauseSelectorFrame(ttk.Frame):
    def __init__(self, master, session: BidConditionsSession, log):
        super().__init__(master)
        self.session = session
        self.log = log
        self.var_search = tk.StringVar(value="")
        self.var_levels = {level: tk.StringVar(value="") for level, _ in LEVEL_LABELS}
        self.var_status = tk.StringVar(value="Catalog: not loaded")
        self.var_verdict = tk.StringVar(value="Risk: not analyzed")
        self.visible: list[ClauseRecord] = []
        self.boxes: dict[CascadeLevel, ttk.Combobox] = {}
        self._build_ui()

    def _build_ui(self):
        top = ttk.Frame(self)
        top.pack(fill="x", padx=8, pady=8)
        ttk.Button(top, text="Load catalog", command=self.on_load).pack(side="left")
        ttk.Button(top, text="Refresh", command=self.on_refresh).pack(side="left", padx=6)
        self.btn_retry = ttk.Button(top, text="Retry", command=self.on_retry, state="disabled")
        self.btn_retry.pack(side="left")
        ttk.Label(top, textvariable=self.var_status).pack(side="left", padx=(12, 0))

        filters = ttk.Frame(self)
        filters.pack(fill="x", padx=8, pady=(0, 8))
        ttk.Label(filters, text="Search work type:").grid(row=0, column=0, sticky="w")
        search = ttk.Entry(filters, textvariable=self.var_search, width=28)
        search.grid(row=0, column=1, sticky="w")
        search.bind("<FocusIn>", lambda _e: self.session.cascade.focus_search())
        search.bind("<KeyRelease>", self.on_search_typed)
        self.search_list = tk.Listbox(filters, height=4, width=30)
        self.search_list.bind("<<ListboxSelect>>", self.on_search_chosen)
        self.search_list.bind("<FocusOut>", lambda _e: self._hide_search())

        for col, (level, label) in enumerate(LEVEL_LABELS):
            ttk.Label(filters, text=label).grid(row=2, column=col * 2, sticky="w", padx=(0 if col == 0 else 10, 0))
            box = ttk.Combobox(filters, textvariable=self.var_levels[level], width=18, state="readonly")
            box.grid(row=2, column=col * 2 + 1, sticky="w")
            box.bind("<<ComboboxSelected>>", lambda _e, lv=level: self.on_level_selected(lv))
            self.boxes[level] = box

        btns = ttk.Frame(self)
        btns.pack(fill="x", padx=8, pady=(0, 8))
        ttk.Button(btns, text="Toggle selected", command=self.on_toggle).pack(side="left")
        ttk.Button(btns, text="Select all visible", command=self.on_toggle_all).pack(side="left", padx=6)
        ttk.Button(btns, text="Clear selection", command=self.on_clear).pack(side="left")
        ttk.Button(btns, text="Attach images...", command=self.on_attach).pack(side="left", padx=6)
        ttk.Button(btns, text="Export selection (xlsx)", command=self.on_export_selection).pack(side="left")

        cols = ("Sel", "Category", "Sub-category", "Tag", "Important", "Images", "Text")
        wrap = ttk.Frame(self)
        wrap.pack(fill="both", expand=True, padx=8, pady=(0, 8))
        self.tree = ttk.Treeview(wrap, columns=cols, show="headings", selectmode="extended")
        widths = (40, 120, 140, 110, 80, 60, 560)
        for col, width in zip(cols, widths):
            self.tree.heading(col, text=col)
            self.tree.column(col, width=width, anchor="w")
        self.tree.tag_configure("important", foreground=IMPORTANT_FG)
        self.tree.pack(side="left", fill="both", expand=True)
        yscroll = ttk.Scrollbar(wrap, orient="vertical", command=self.tree.yview)
        yscroll.pack(side="right", fill="y")
        self.tree.configure(yscroll=yscroll.set)

        chosen = ttk.LabelFrame(self, text="Selected clauses")
        chosen.pack(fill="both", expand=True, padx=8, pady=(0, 8))
        sel_cols = ("Section", "Forced", "Images", "Text")
        self.selected_tree = ttk.Treeview(chosen, columns=sel_cols, show="headings", selectmode="browse", height=6)
        for col, width in zip(sel_cols, (140, 60, 60, 560)):
            self.selected_tree.heading(col, text=col)
            self.selected_tree.column(col, width=width, anchor="w")
        self.selected_tree.tag_configure("important", foreground=IMPORTANT_FG)
        self.selected_tree.bind("<<TreeviewSelect>>", lambda _e: self.refresh_images())
        self.selected_tree.pack(side="left", fill="both", expand=True, padx=(6, 0), pady=6)

        side = ttk.Frame(chosen)
        side.pack(side="right", fill="y", padx=6, pady=6)
        ttk.Button(side, text="Remove clause", command=self.on_remove_selected).pack(fill="x")
        ttk.Label(side, text="Images:").pack(anchor="w", pady=(8, 0))
        self.image_list = tk.Listbox(side, height=4, width=28)
        self.image_list.pack(fill="x")
        ttk.Button(side, text="Remove image", command=self.on_detach_image).pack(fill="x", pady=(4, 0))
        self.selected: list[SelectedClause] = []

        custom = ttk.LabelFrame(self, text="Custom clause")
        custom.pack(fill="x", padx=8, pady=(0, 8))
        self.custom_text = tk.Text(custom, height=3, wrap="word")
        self.custom_text.pack(fill="x", padx=6, pady=6)
        self.custom_text.bind("<KeyRelease>", lambda _e: self.session.gate.set_text(self._custom_value()))
        row = ttk.Frame(custom)
        row.pack(fill="x", padx=6, pady=(0, 6))
        self.btn_analyze = ttk.Button(row, text="Analyze risk", command=self.on_analyze)
        self.btn_analyze.pack(side="left")
        ttk.Button(row, text="Add clause", command=self.on_add_custom).pack(side="left", padx=6)
        ttk.Label(row, textvariable=self.var_verdict).pack(side="left", padx=(12, 0))

    # -- catalog ---------------------------------------------------------------

    def _run_load(self, work):
        self.var_status.set("Catalog: loading...")
        self.btn_retry.config(state="disabled")

        def job():
            t0 = time.perf_counter()
            ok = work()
            self.after(0, lambda: self._after_load(ok, time.perf_counter() - t0))

        threading.Thread(target=job, daemon=True).start()

    def _after_load(self, ok: bool, elapsed: float):
        if not ok:
            err = self.session.catalog_error
            code = err.code if err else "unexpected_error"
            self.var_status.set(f"Catalog: failed ({code})")
            self.btn_retry.config(state="normal")
            guidance = build_corrective_guidance(code, "load_catalog")
            self.log(f"GUIDANCE code={guidance['error_code']} retry_safe={str(guidance['retry_safe']).lower()}")
            for idx, step in enumerate(guidance["steps"], start=1):
                self.log(f"GUIDANCE_STEP {idx}: {step}")
            return
        self.var_status.set(f"Catalog: {len(self.session.records)} clauses ({elapsed:.2f}s)")
        self.var_search.set(self.session.cascade.search_term)
        self.refresh_filters()

    def on_load(self):
        self._run_load(self.session.load_catalog)

    def on_retry(self):
        self._run_load(self.session.retry_load)

    def on_refresh(self):
        self.custom_text.delete("1.0", "end")
        self.var_verdict.set("Risk: not analyzed")
        self._run_load(self.session.refresh)

    # -- filters ---------------------------------------------------------------

    def on_search_typed(self, _event=None):
        matches = self.session.cascade.type_search(self.var_search.get())
        self.search_list.delete(0, "end")
        for name in matches:
            self.search_list.insert("end", name)
        if matches:
            self.search_list.grid(row=1, column=1, sticky="w")
        else:
            self._hide_search()

    def on_search_chosen(self, _event=None):
        picked = self.search_list.curselection()
        if not picked:
            return
        name = self.search_list.get(picked[0])
        self.session.cascade.choose_work_type(name)
        self.session.assembly.set_work_type(name)
        self.var_search.set(name)
        self._hide_search()
        self.refresh_filters()

    def _hide_search(self):
        self.session.cascade.dismiss_dropdown()
        self.search_list.grid_remove()

    def on_level_selected(self, level: CascadeLevel):
        self.session.select_filter(level, self.var_levels[level].get())
        if level == CascadeLevel.WORK_TYPE:
            self.var_search.set(self.var_levels[level].get())
        self.refresh_filters()

    def refresh_filters(self):
        cascade = self.session.cascade
        for level, _ in LEVEL_LABELS:
            self.boxes[level]["values"] = cascade.options(level)
            self.var_levels[level].set(cascade.value(level) or "")
        self.refresh_clauses()

    def refresh_clauses(self):
        self.visible = self.session.visible_clauses()
        for item in self.tree.get_children():
            self.tree.delete(item)
        selection = self.session.selection
        for idx, clause in enumerate(self.visible):
            tags = ("important",) if clause.is_important else ()
            self.tree.insert(
                "",
                "end",
                iid=str(idx),
                values=(
                    "x" if clause in selection else "",
                    clause.major_category,
                    clause.sub_category,
                    clause.tag,
                    "yes" if clause.is_important else "",
                    len(selection.images_for(clause)),
                    clause.text,
                ),
                tags=tags,
            )
        self.refresh_selected()
        self.master.event_generate("<<SelectionChanged>>")

    def refresh_selected(self):
        keep = self._picked_selected()
        self.selected = self.session.selected()
        for item in self.selected_tree.get_children():
            self.selected_tree.delete(item)
        for idx, item in enumerate(self.selected):
            self.selected_tree.insert(
                "",
                "end",
                iid=str(idx),
                values=(section_title(item), "yes" if item.forced else "", len(item.images), item.text),
                tags=("important",) if item.is_important else (),
            )
            if keep is not None and item.key == keep.key:
                self.selected_tree.selection_set(str(idx))
        self.refresh_images()

    def refresh_images(self):
        self.image_list.delete(0, "end")
        item = self._picked_selected()
        if item is None:
            return
        for image in item.images:
            self.image_list.insert("end", f"{image.file_name} ({format_file_size(image.size)})")

    def _picked(self) -> list[ClauseRecord]:
        return [self.visible[int(iid)] for iid in self.tree.selection()]

    def _picked_selected(self) -> SelectedClause | None:
        picked = self.selected_tree.selection()
        if not picked or int(picked[0]) >= len(self.selected):
            return None
        return self.selected[int(picked[0])]

    # -- selection -------------------------------------------------------------

    def on_toggle(self):
        picked = self._picked()
        if not picked:
            messagebox.showwarning("Selection", "Select clauses in the table first.")
            return
        for clause in picked:
            self.session.toggle(clause)
        self.refresh_clauses()

    def on_toggle_all(self):
        selected = self.session.toggle_all_visible()
        self.log(f"INFO: Visible clauses {'selected' if selected else 'deselected'} ({len(self.visible)}).")
        self.refresh_clauses()

    def on_clear(self):
        self.session.selection.remove_all()
        self.refresh_clauses()

    def _attach_target(self) -> ClauseRecord | None:
        item = self._picked_selected()
        if item is not None:
            return item.clause
        picked = self._picked()
        if len(picked) == 1 and picked[0] in self.session.selection:
            return picked[0]
        return None

    def on_attach(self):
        clause = self._attach_target()
        if clause is None:
            messagebox.showwarning("Images", "Pick one selected clause to attach images to.")
            return
        paths = filedialog.askopenfilenames(
            title="Attach images",
            filetypes=[("Images", "*.png *.jpg *.jpeg *.gif *.webp"), ("All files", "*.*")],
        )
        if not paths:
            return
        uploads = []
        for path in paths:
            try:
                uploads.append(UploadedFile.from_path(path))
            except OSError as exc:
                self.log(f"ERROR: Could not read {path}: {exc}")
        result = self.session.attach_images(clause, uploads)
        for image in result.attached:
            self.log(f"INFO: Attached {image.file_name} ({format_file_size(image.size)}).")
        if result.rejected:
            messagebox.showwarning("Images", "\n".join(result.rejected))
        self.refresh_clauses()

    def on_remove_selected(self):
        item = self._picked_selected()
        if item is None:
            messagebox.showwarning("Selection", "Pick a clause in the selected list first.")
            return
        if self.session.remove_clause(item.clause):
            self.log(f"INFO: Removed clause ({len(item.images)} image(s) discarded).")
        self.refresh_clauses()

    def on_detach_image(self):
        item = self._picked_selected()
        picked = self.image_list.curselection()
        if item is None or not picked:
            messagebox.showwarning("Images", "Pick an image of a selected clause first.")
            return
        image = item.images[picked[0]]
        if self.session.detach_image(item.clause, image.id):
            self.log(f"INFO: Removed image {image.file_name}.")
        self.refresh_clauses()

    def on_export_selection(self):
        path = filedialog.asksaveasfilename(
            title="Export selection",
            defaultextension=".xlsx",
            filetypes=[("Excel", "*.xlsx")],
        )
        if not path:
            return
        try:
            out = self.session.export_selection(path)
            self.log(f"INFO: Selection exported to {out}")
        except (OSError, ValueError) as exc:
            messagebox.showerror("Export", str(exc))

    # -- custom clause ---------------------------------------------------------

    def _custom_value(self) -> str:
        return self.custom_text.get("1.0", "end").strip()

    def on_analyze(self):
        text = self._custom_value()
        self.btn_analyze.config(state="disabled")
        self.var_verdict.set("Risk: analyzing...")

        def work():
            result = self.session.analyze_custom_clause(text)
            self.after(0, lambda: self._after_analyze(result))

        threading.Thread(target=work, daemon=True).start()

    def _after_analyze(self, result):
        self.btn_analyze.config(state="normal")
        if result.ok:
            verdict = result.verdict
            self.var_verdict.set(f"Risk: {verdict.level} (score {verdict.score:g}, {verdict.category})")
            return
        self.var_verdict.set("Risk: not analyzed")
        messagebox.showwarning("Risk analysis", "\n".join(result.messages))
        if result.error:
            guidance = build_corrective_guidance(result.error.code, "analyze_risk")
            for idx, step in enumerate(guidance["steps"], start=1):
                self.log(f"GUIDANCE_STEP {idx}: {step}")

    def on_add_custom(self):
        self.session.gate.set_text(self._custom_value())
        decision = self.session.add_custom_clause()
        if decision.outcome == GateOutcome.CONFIRMATION_REQUIRED:
            if not messagebox.askyesno("High risk", decision.message):
                return
            decision = self.session.add_custom_clause(confirm_forced=True)
        if not decision.allowed:
            messagebox.showwarning("Custom clause", decision.message)
            return
        if decision.outcome == GateOutcome.ADDED_WITH_WARNING:
            messagebox.showwarning("Custom clause", decision.message)
        self.log(f"INFO: {decision.message}")
        self.custom_text.delete("1.0", "end")
        self.var_verdict.set("Risk: not analyzed")
        self.refresh_clauses()


class ExportFrame(ttk.Frame):
    FIELDS = (
        ("name", "Project name *"),
        ("location", "Location"),
        ("client", "Client"),
        ("contact_role", "Contact role"),
        ("contact_name", "Contact name"),
        ("docs_url", "Docs URL"),
        ("docs_password", "Docs password"),
    )

    def __init__(self, master, session: BidConditionsSession, log):
        super().__init__(master)
        self.session = session
        self.log = log
        self.vars = {key: tk.StringVar(value="") for key, _ in self.FIELDS}
        self.var_volume = tk.DoubleVar(value=100.0)
        self.var_exemption = tk.DoubleVar(value=100.0)
        defaults = ExportOptions()
        self.var_format = tk.StringVar(value=defaults.page_format)
        self.var_orientation = tk.StringVar(value=defaults.orientation)
        self.var_margin = tk.DoubleVar(value=defaults.margin_inches)
        self.var_quality = tk.IntVar(value=int(round(defaults.image_quality * 100)))
        self.var_template = tk.StringVar(value=defaults.template)
        self.var_header = tk.BooleanVar(value=defaults.include_header)
        self.var_footer = tk.BooleanVar(value=defaults.include_footer)
        self.var_watermark = tk.BooleanVar(value=defaults.include_watermark)
        self.var_summary = tk.StringVar(value="Sections: 0  Clauses: 0")
        self._build_ui()

    def _build_ui(self):
        info = ttk.LabelFrame(self, text="Project")
        info.pack(fill="x", padx=8, pady=8)
        for row, (key, label) in enumerate(self.FIELDS):
            ttk.Label(info, text=label).grid(row=row, column=0, sticky="w", padx=6)
            ttk.Entry(info, textvariable=self.vars[key], width=48).grid(row=row, column=1, sticky="w")
        ttk.Label(info, text="Order volume %").grid(row=0, column=2, sticky="w", padx=(16, 6))
        ttk.Spinbox(info, from_=0, to=100, increment=0.5, textvariable=self.var_volume, width=8).grid(
            row=0, column=3, sticky="w"
        )
        ttk.Label(info, text="Exemption %").grid(row=1, column=2, sticky="w", padx=(16, 6))
        ttk.Spinbox(info, from_=0, to=100, increment=0.5, textvariable=self.var_exemption, width=8).grid(
            row=1, column=3, sticky="w"
        )

        opts = ttk.LabelFrame(self, text="PDF options")
        opts.pack(fill="x", padx=8, pady=(0, 8))
        ttk.Label(opts, text="Format:").grid(row=0, column=0, sticky="w", padx=6)
        ttk.Combobox(opts, textvariable=self.var_format, values=("a4", "letter"), width=8, state="readonly").grid(
            row=0, column=1, sticky="w"
        )
        ttk.Label(opts, text="Orientation:").grid(row=0, column=2, sticky="w", padx=6)
        ttk.Combobox(
            opts, textvariable=self.var_orientation, values=("portrait", "landscape"), width=10, state="readonly"
        ).grid(row=0, column=3, sticky="w")
        ttk.Label(opts, text="Template:").grid(row=0, column=4, sticky="w", padx=6)
        ttk.Combobox(
            opts, textvariable=self.var_template, values=("standard", "compact", "detailed"), width=10, state="readonly"
        ).grid(row=0, column=5, sticky="w")
        ttk.Label(opts, text="Margin (in):").grid(row=1, column=0, sticky="w", padx=6)
        ttk.Scale(opts, from_=0.5, to=2.0, variable=self.var_margin).grid(row=1, column=1, columnspan=2, sticky="we")
        ttk.Label(opts, text="Image quality (%):").grid(row=1, column=3, sticky="w", padx=6)
        ttk.Scale(opts, from_=50, to=100, variable=self.var_quality).grid(row=1, column=4, columnspan=2, sticky="we")
        ttk.Checkbutton(opts, text="Header", variable=self.var_header).grid(row=2, column=0, sticky="w", padx=6)
        ttk.Checkbutton(opts, text="Footer", variable=self.var_footer).grid(row=2, column=1, sticky="w")
        ttk.Checkbutton(opts, text="Watermark", variable=self.var_watermark).grid(row=2, column=2, sticky="w")

        btns = ttk.Frame(self)
        btns.pack(fill="x", padx=8, pady=(0, 8))
        self.btn_export = ttk.Button(btns, text="Export PDF", command=self.on_export)
        self.btn_export.pack(side="left")
        ttk.Button(btns, text="Clear history", command=self.on_clear_history).pack(side="left", padx=6)
        ttk.Label(btns, textvariable=self.var_summary).pack(side="left", padx=(12, 0))
        self.progress = ttk.Progressbar(btns, orient="horizontal", length=220, mode="determinate", maximum=100)
        self.progress.pack(side="right")

        cols = ("Exported", "File", "Clauses")
        wrap = ttk.Frame(self)
        wrap.pack(fill="both", expand=True, padx=8, pady=(0, 8))
        self.history_tree = ttk.Treeview(wrap, columns=cols, show="headings", height=8)
        for col, width in zip(cols, (220, 520, 80)):
            self.history_tree.heading(col, text=col)
            self.history_tree.column(col, width=width, anchor="w")
        self.history_tree.pack(fill="both", expand=True)
        self.refresh_history()

    def project_info(self) -> ProjectInfo:
        values = {key: var.get().strip() for key, var in self.vars.items()}
        try:
            volume = float(self.var_volume.get())
        except (tk.TclError, ValueError):
            volume = 100.0
        try:
            exemption = float(self.var_exemption.get())
        except (tk.TclError, ValueError):
            exemption = 100.0
        return ProjectInfo(order_volume_rate=volume, exemption_rate=exemption, **values)

    def export_options(self) -> ExportOptions:
        return ExportOptions(
            page_format=self.var_format.get(),
            orientation=self.var_orientation.get(),
            margin_inches=self.var_margin.get(),
            image_quality=self.var_quality.get() / 100.0,
            template=self.var_template.get(),
            include_header=self.var_header.get(),
            include_footer=self.var_footer.get(),
            include_watermark=self.var_watermark.get(),
        )

    def refresh_summary(self, _event=None):
        sections = self.session.sections()
        total = sum(len(s.conditions) for s in sections)
        self.var_summary.set(f"Sections: {len(sections)}  Clauses: {total}")

    def refresh_history(self):
        for item in self.history_tree.get_children():
            self.history_tree.delete(item)
        for entry in self.session.export_history_entries():
            self.history_tree.insert(
                "",
                "end",
                values=(
                    entry.get("exported_at", ""),
                    entry.get("file_name", ""),
                    len(entry.get("selected_conditions") or []),
                ),
            )

    def on_clear_history(self):
        self.session.clear_export_history()
        self.refresh_history()
        self.log("INFO: Export history cleared.")

    def _set_progress(self, value: int):
        self.after(0, lambda: self.progress.configure(value=value))

    def on_export(self):
        self.session.set_project_info(self.project_info())
        options = self.export_options()
        self.btn_export.config(state="disabled")
        self.progress.configure(value=0)

        def work():
            try:
                result = self.session.export(options, on_progress=self._set_progress)
            except SurfaceUnavailableError as exc:
                failure = ("surface_unavailable", str(exc))
            except DocumentRegionNotFound as exc:
                failure = ("render_target_missing", str(exc))
            except ExportError as exc:
                failure = ("unexpected_error", str(exc))
            else:
                self.after(0, lambda: self._export_done(result))
                return
            self.after(0, lambda: self._export_failed(*failure))

        threading.Thread(target=work, daemon=True).start()

    def _export_done(self, result):
        self.btn_export.config(state="normal")
        if not result.ok:
            guidance = build_corrective_guidance("validation_missing_fields", "export_pdf")
            self.log(f"GUIDANCE code={guidance['error_code']} retry_safe={str(guidance['retry_safe']).lower()}")
            messagebox.showerror("Validation", "\n".join(result.errors))
            return
        self.refresh_history()
        messagebox.showinfo("Export", f"Saved {result.file_name} ({result.page_count} pages)\n{result.pdf_path}")

    def _export_failed(self, code: str, message: str):
        self.btn_export.config(state="normal")
        self.progress.configure(value=0)
        guidance = build_corrective_guidance(code, "export_pdf")
        self.log(f"GUIDANCE code={guidance['error_code']} retry_safe={str(guidance['retry_safe']).lower()}")
        for idx, step in enumerate(guidance["steps"], start=1):
            self.log(f"GUIDANCE_STEP {idx}: {step}")
        messagebox.showerror("Export", message)


class BidConditionsApp(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("Bid Conditions Builder")
        self.geometry("1200x820")
        self.minsize(1000, 680)
        self._apply_theme()

        self.session = BidConditionsSession.from_config(log=self.log)

        notebook = ttk.Notebook(self)
        notebook.pack(fill="both", expand=True)
        self.selector_tab = ClauseSelectorFrame(notebook, self.session, self.log)
        self.export_tab = ExportFrame(notebook, self.session, self.log)
        notebook.add(self.selector_tab, text="Clauses")
        notebook.add(self.export_tab, text="Document & Export")
        notebook.bind("<<SelectionChanged>>", self.export_tab.refresh_summary)

        self.log_text = tk.Text(self, height=9, wrap="word")
        self.log_text.pack(fill="x", padx=8, pady=(0, 8))
        self.log_text.config(state="disabled")
        log_actions = ttk.Frame(self)
        log_actions.pack(fill="x", padx=8, pady=(0, 8))
        ttk.Button(log_actions, text="Copy Logs", command=self.copy_logs).pack(side="left")

        self.after(100, self.selector_tab.on_load)

    def _apply_theme(self):
        self.configure(bg=PANEL_BG)
        style = ttk.Style(self)
        style.theme_use("clam")
        style.configure("TNotebook.Tab", padding=(12, 4))
        style.configure("Treeview.Heading", foreground=ACCENT)

    def log(self, msg: str):
        # Services log from worker threads too.
        self.after(0, self._append_log, msg)

    def _append_log(self, msg: str):
        self.log_text.config(state="normal")
        self.log_text.insert("end", time.strftime("%H:%M:%S  ") + msg + "\n")
        self.log_text.see("end")
        self.log_text.config(state="disabled")

    def copy_logs(self):
        text = self.log_text.get("1.0", "end").strip()
        if not text:
            messagebox.showinfo("Logs", "No logs to copy.")
            return
        self.clipboard_clear()
        self.clipboard_append(text)
        self.log("INFO: Logs copied to clipboard.")


def main():
    BidConditionsApp().mainloop()


if __name__ == "__main__":
    main()
