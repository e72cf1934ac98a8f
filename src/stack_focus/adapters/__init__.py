"""Input and output adapters around the core.

- perf_script: splits ``perf script`` output into samples
- render: text renderers for summaries, histograms, trees, flat profiles and DOT graphs
"""

from stack_focus.adapters.perf_script import PerfScriptReader, open_input, parse_frame, read_samples
from stack_focus.adapters.render import (
    render_dot,
    render_flat,
    render_histogram,
    render_summary,
    render_tree,
)

__all__ = [
    "PerfScriptReader",
    "open_input",
    "parse_frame",
    "read_samples",
    "render_dot",
    "render_flat",
    "render_histogram",
    "render_summary",
    "render_tree",
]
