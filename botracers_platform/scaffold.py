"""Starter bot workspace: a Cargo manifest plus one ``car`` binary."""

from __future__ import annotations

import re
from pathlib import Path

from .errors import PreconditionError
from .workspace import BINARIES_DIR, MANIFEST_FILENAME


STARTER_BINARY = "car"
SDK_DEPENDENCY = 'botracers-bot-sdk = "0.1"'

STARTER_MANIFEST = """\
[package]
name = "{package}"
version = "0.1.0"
edition = "2024"

[dependencies]
{sdk}

[profile.release]
panic = "abort"
opt-level = "s"
"""

STARTER_CAR_RS = """\
#![no_std]
#![no_main]

use core::fmt::Write;

use botracers_bot_sdk::{
    driving::{CarControls, CarState},
    log, SLOT2, SLOT3,
};

#[unsafe(export_name = "main")]
fn main() -> ! {
    writeln!(log(), "Starter car bot running...").ok();

    let car_state = CarState::bind(SLOT2);
    let mut car_controls = CarControls::bind(SLOT3);

    loop {
        let speed = car_state.speed();
        let forward = car_state.forward();

        let accel = if speed < 18.0 { 0.35 } else { 0.1 };
        let brake = if speed > 24.0 { 0.15 } else { 0.0 };
        let steering = (-forward.x * 0.6).clamp(-0.5, 0.5);

        car_controls.set_accelerator(accel);
        car_controls.set_brake(brake);
        car_controls.set_steering(steering);
    }
}
"""


def package_name_for(root: Path | str) -> str:
    """Derive a valid Cargo package name from the directory name."""
    name = re.sub(r"[^a-z0-9_-]+", "-", Path(root).name.lower()).strip("-_")
    if not name or not name[0].isalpha():
        name = f"bot-{name}" if name else "bot"
    return name


def scaffold_workspace(root: Path | str) -> list[Path]:
    """Write the starter manifest and ``src/bin/car.rs`` under ``root``.

    Refuses to touch a directory that already has a manifest. Returns the
    files written.
    """
    root = Path(root)
    manifest = root / MANIFEST_FILENAME
    if manifest.exists():
        raise PreconditionError(f"A {MANIFEST_FILENAME} already exists in {root}.")
    if root.exists() and not root.is_dir():
        raise PreconditionError(f"{root} is not a directory.")

    source = root / BINARIES_DIR / f"{STARTER_BINARY}.rs"
    source.parent.mkdir(parents=True, exist_ok=True)
    manifest.write_text(
        STARTER_MANIFEST.format(package=package_name_for(root), sdk=SDK_DEPENDENCY),
        encoding="utf-8",
    )
    if not source.exists():
        source.write_text(STARTER_CAR_RS, encoding="utf-8")
    return [manifest, source]
