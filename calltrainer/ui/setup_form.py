# calltrainer/ui/setup_form.py
import tkinter as tk
from tkinter import messagebox

from pydantic import ValidationError

from calltrainer.models import ClinicProfile, ClinicServices
from calltrainer.services.profile_store import ProfileStore

# Popup window for clinic setup before training. Saves and returns the ClinicProfile
def run_setup_form(store: ProfileStore, current: ClinicProfile | None = None):
    result = {}

    def submit():
        try:
            cost = float(entry_cost.get().strip().lstrip("$") or "0")
        except ValueError:
            messagebox.showerror("Error", "First visit cost must be a number.")
            return

        try:
            profile = ClinicProfile(
                clinic_name=entry_clinic.get().strip(),
                doctor_name=entry_doctor.get().strip(),
                first_visit_cost=cost,
                address=entry_address.get().strip(),
                office_hours=entry_hours.get().strip(),
                services=ClinicServices(
                    decompression=var_decomp.get(),
                    class_iv_laser=var_laser.get(),
                    shockwave=var_shockwave.get(),
                ),
            )
        except ValidationError:
            messagebox.showerror("Error", "First visit cost can't be negative.")
            return

        if not profile.clinic_name or not profile.doctor_name:
            messagebox.showerror("Error", "Clinic name and doctor name are required.")
            return

        store.save_profile(profile)
        result["profile"] = profile
        root.destroy()

    root = tk.Tk()
    root.title("Clinic Setup")

    labels = ["Clinic Name", "Doctor Name", "First Visit Cost ($)", "Address", "Office Hours"]
    for row, text in enumerate(labels):
        tk.Label(root, text=text).grid(row=row, column=0, sticky="w")

    entry_clinic = tk.Entry(root, width=40); entry_clinic.grid(row=0, column=1)
    entry_doctor = tk.Entry(root, width=40); entry_doctor.grid(row=1, column=1)
    entry_cost = tk.Entry(root, width=40); entry_cost.grid(row=2, column=1)
    entry_address = tk.Entry(root, width=40); entry_address.grid(row=3, column=1)
    entry_hours = tk.Entry(root, width=40); entry_hours.grid(row=4, column=1)

    var_decomp = tk.BooleanVar(value=False)
    var_laser = tk.BooleanVar(value=False)
    var_shockwave = tk.BooleanVar(value=False)
    tk.Checkbutton(root, text="Decompression", variable=var_decomp).grid(row=5, column=0, sticky="w")
    tk.Checkbutton(root, text="Class IV Laser", variable=var_laser).grid(row=5, column=1, sticky="w")
    tk.Checkbutton(root, text="Shockwave", variable=var_shockwave).grid(row=6, column=0, sticky="w")

    # prefill when editing an existing setup
    if current:
        entry_clinic.insert(0, current.clinic_name)
        entry_doctor.insert(0, current.doctor_name)
        entry_cost.insert(0, f"{current.first_visit_cost:g}")
        entry_address.insert(0, current.address)
        entry_hours.insert(0, current.office_hours)
        var_decomp.set(current.services.decompression)
        var_laser.set(current.services.class_iv_laser)
        var_shockwave.set(current.services.shockwave)

    tk.Button(root, text="Save Setup", command=submit).grid(row=7, columnspan=2)
    root.mainloop()

    return result.get("profile")
