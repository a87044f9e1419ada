from .model import (
    Category,
    Relation,
    ConceptNode,
    ConceptLink,
    GraphModel,
    GraphSnapshot,
    GraphWarning,
    clamp_mastery,
    node_from_mapping,
    link_from_mapping,
)
from .styles import RELATION_STYLES, NODE_RADII, RelationStyle, node_fill, node_radius, relation_style
from .projections import (
    ProjectionMode,
    YearScale,
    NetworkProjection,
    TimelineProjection,
    make_projection,
)
from .simulation import (
    ForceSimulation,
    SimulationConfig,
    get_simulation_config,
    set_simulation_config,
    settle,
)
from .interaction import InteractionController, Viewport
from .scheduler import TickScheduler, ManualScheduler, IntervalScheduler
from .collaborators import ExpandResult, BranchSuggestion
from .engine import LayoutEngine, LayoutFrame, NodePlacement, EdgePlacement

__all__ = [
    'Category',
    'Relation',
    'ConceptNode',
    'ConceptLink',
    'GraphModel',
    'GraphSnapshot',
    'GraphWarning',
    'clamp_mastery',
    'node_from_mapping',
    'link_from_mapping',
    'RELATION_STYLES',
    'NODE_RADII',
    'RelationStyle',
    'node_fill',
    'node_radius',
    'relation_style',
    'ProjectionMode',
    'YearScale',
    'NetworkProjection',
    'TimelineProjection',
    'make_projection',
    'ForceSimulation',
    'SimulationConfig',
    'get_simulation_config',
    'set_simulation_config',
    'settle',
    'InteractionController',
    'Viewport',
    'TickScheduler',
    'ManualScheduler',
    'IntervalScheduler',
    'ExpandResult',
    'BranchSuggestion',
    'LayoutEngine',
    'LayoutFrame',
    'NodePlacement',
    'EdgePlacement',
]
