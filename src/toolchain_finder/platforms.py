"""
Platform policy data: tier-1 targets and platform-restricted components.

Mirrors the upstream platform support policy
(https://doc.rust-lang.org/nightly/rustc/platform-support.html). Bump
PLATFORM_POLICY_VERSION whenever either table changes.
"""

PLATFORM_POLICY_VERSION = "2025-09"

# ============================================================================
# TIER-1 TARGETS
# ============================================================================
TIER_1_TARGETS: tuple[str, ...] = (
    "aarch64-apple-darwin",
    "aarch64-pc-windows-msvc",
    "aarch64-unknown-linux-gnu",
    "i686-pc-windows-msvc",
    "i686-unknown-linux-gnu",
    "x86_64-pc-windows-gnu",
    "x86_64-pc-windows-msvc",
    "x86_64-unknown-linux-gnu",
)

# ============================================================================
# PLATFORM-RESTRICTED COMPONENTS
# ============================================================================
# Components that only ever ship for a handful of platforms. A broad target
# check ignores them; a check for exactly one of their home platforms keeps
# them.
PLATFORM_RESTRICTED_COMPONENTS: dict[str, frozenset[str]] = {
    "lldb-preview": frozenset({
        "i686-apple-darwin",
        "x86_64-apple-darwin",
    }),
    "rust-mingw": frozenset({
        "i686-pc-windows-gnu",
        "x86_64-pc-windows-gnu",
    }),
}
