from typing import Any, Dict, Optional

from lexcorpus.store.corpus import Corpus
from lexcorpus.tools.sources import AboutContext

# Loaded corpus (read-only, shared by all requests)
corpus: Optional[Corpus] = None
about_context: Optional[AboutContext] = None
corpus_path: Optional[str] = None
load_error: Optional[str] = None

# Tool call stats (for monitoring)
tool_stats: Dict[str, Any] = {
    'total_calls': 0,
    'errors': 0,
    'last_call_time': None,
}

# Metrics
REQUEST_COUNT: Any = None
REQUEST_LATENCY: Any = None
TOOL_CALLS: Any = None
