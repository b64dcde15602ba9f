"""Global configuration: paths, constants, settings."""

from datetime import timedelta
from pathlib import Path

# Sub-directory names inside the managed data root
SOURCES_DIR = "sources"
ARCHIVES_DIR = "archives"
BINARIES_DIR = "binaries"

# Build output directory inside the working tree
BUILD_DIR = "build"

# Directory holding the build-script contract inside the working tree
SCRIPTS_DIR = "scripts"
INSTALL_BUILD_TOOLS_SCRIPT = "install-build-tools.sh"
SETUP_DEPENDENCIES_SCRIPT = "setup-dependencies.sh"
LEGACY_CONFIGURE_SCRIPT = "configure.sh"
BUILD_SCRIPT = "build.sh"

ARCHIVE_SUFFIX = ".tar.gz"
PROFILING_SUFFIX = "-profiling"

# File whose history decides whether benchmark shards must be re-seeded
SEEDER_SOURCE_PATH = "tools/shard-seeder/shard-seeder.cpp"

# Embedded RPC proxy copied next to the compiled binaries when present
RPC_PROXY_PATH = Path("src", "parsec", "agent", "runners", "evm", "rpc_proxy")

# Remote ref layout for pull requests
PULL_REF_PREFIX = "refs/pull/"
PULL_HEAD_REFSPEC = "+refs/pull/*/head:refs/remotes/origin/pr-head/*"

# How many mainline commits stay pinned above pull-request entries
PINNED_MAINLINE_COMMITS = 3

# Pull-request retention windows
RECENT_PR_WINDOW = timedelta(hours=48)
MERGEABLE_PR_WINDOW = timedelta(days=90)

# RFC-2822 style date as produced by git's %aD / %cD placeholders
GIT_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S %z"
