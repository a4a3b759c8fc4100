"""
Human-readable output blocks: configuration summary, configure command,
completion banner. Pure string builders; the caller echoes them.
"""

from __future__ import annotations

from flangbuild.core.models.action import Action
from flangbuild.core.models.config import BuildConfig, Toolchain, on_off

RULE = "=" * 46


def _real16_label(config: BuildConfig, toolchain: Toolchain) -> str:
    if not config.real16:
        return "OFF"
    if toolchain.quadmath.attempted and not toolchain.quadmath.found:
        return "ON (libquadmath not found)"
    return "ON"


def render_summary(config: BuildConfig, toolchain: Toolchain) -> list[str]:
    """The fixed configuration block shown before anything runs."""
    rows = [
        ("Root directory:", str(config.root_dir)),
        ("Source directory:", str(config.source_dir)),
        ("Build directory:", str(config.build_dir)),
        ("Install directory:", str(config.install_dir)),
        ("Build type:", config.build_type),
        ("Parallel jobs:", str(config.jobs)),
        ("Assertions:", on_off(config.assertions)),
        ("Werror:", on_off(config.werror)),
        ("REAL(16):", _real16_label(config, toolchain)),
        ("Offload:", on_off(config.offload)),
        ("LLVM targets:", config.targets_string),
        ("C compiler:", toolchain.cc),
        ("C++ compiler:", toolchain.cxx),
        ("Linker:", toolchain.linker_name),
        ("ccache:", "enabled" if toolchain.use_ccache else "disabled"),
        ("Memory limit:", f"{config.memory_limit_mb} MB" if config.memory_limit_mb else "none"),
    ]
    if config.cmake_args:
        rows.append(("Extra CMake args:", " ".join(config.cmake_args)))

    lines = ["", RULE, "Flang Build Configuration", RULE]
    lines += [f"{label:<19}{value}" for label, value in rows]
    lines.append(RULE)
    return lines


def render_help_hint(prog_name: str) -> list[str]:
    return ["", f"For help and available options, run: {prog_name} --help", ""]


def render_configure_command(action: Action) -> list[str]:
    """One option per line, continuation backslashes, source dir last."""
    *options, source = action.args
    lines = ["", RULE, "CMake Command:", RULE, f"{action.program} \\"]
    lines += [f"  {arg} \\" for arg in options]
    lines += [f"  {source}", RULE, ""]
    return lines


def render_completion(config: BuildConfig) -> list[str]:
    if config.build_only:
        return [
            RULE,
            "Build complete!",
            RULE,
            f"Build tree: {config.build_dir}",
            "",
            "To install later:",
            f"  cd {config.build_dir} && ninja install",
            RULE,
        ]
    return [
        RULE,
        "Build complete!",
        RULE,
        f"Flang installed to: {config.install_dir}",
        "",
        "To use Flang, add to your PATH:",
        f'  export PATH="{config.install_dir}/bin:$PATH"',
        "",
        "To run tests later:",
        f"  cd {config.build_dir} && ninja check-flang check-flang-rt",
        RULE,
    ]
