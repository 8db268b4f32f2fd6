from .models import (
    Bubble, Backlinks, Content, RealContent, SynthesizedContent, Line, Summary,
    Page, PageError, PageResult, RelatedPage, RelatedPages, ProjectRelatedPage,
    to_id, from_id, to_title_lc
)
from .config import (
    BubbleConfig, ProviderConfig, SchedulerConfig, CacheConfig,
    CircuitBreakerConfig, Clock, system_clock
)
from .errors import LinkbubbleError, UnexpectedResponseError, GraphInvariantError
from .resilience import CircuitBreaker, CircuitState, setup_logging
