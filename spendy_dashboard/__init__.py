"""Top-level package for the Spendy dashboard.

The engines are plain modules that work on pandas data and have no UI
dependency:

* ``categorizer`` – keyword rules assigning a category to a transaction
* ``monthly`` – monthly income/expense/category aggregation
* ``alerts`` – budget, spike, unusual spending, savings and income alerts
* ``savings`` / ``suggestions`` / ``goals`` – savings capacity, cutbacks and goals
* ``chatbot`` – keyword-routed answers to spending questions

``visualization`` builds Plotly figures from their output and ``dashboard``
is the Streamlit app tying everything together:

```bash
streamlit run spendy_dashboard/dashboard.py
```
"""

from . import alerts  # noqa: F401
from . import categorizer  # noqa: F401
from . import chatbot  # noqa: F401
from . import data_processing  # noqa: F401
from . import goals  # noqa: F401
from . import monthly  # noqa: F401
from . import preferences  # noqa: F401
from . import savings  # noqa: F401
from . import suggestions  # noqa: F401
from . import visualization  # noqa: F401
# Streamlit may not be installed where only the engines are used (e.g. in
# unit tests), so the app module is optional.
try:
    from . import dashboard  # type: ignore  # noqa: F401
except ModuleNotFoundError:
    dashboard = None  # type: ignore


__all__ = [
    "alerts",
    "categorizer",
    "chatbot",
    "data_processing",
    "goals",
    "monthly",
    "preferences",
    "savings",
    "suggestions",
    "visualization",
    "dashboard",
]
