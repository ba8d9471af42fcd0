"""abuild - build orchestration core for small native-code projects.

Build descriptions are Python scripts written directly against these
primitives:

    Modules:      module(), SourcesBuilder, DependenciesBuilder, join()
    Handlers:     custom_handler(), custom_processor(), NONE
    Pipeline:     process_sources(), each_source()
    Files:        FilePool, prefixed(), output_path(), install()
    Dependencies: dependency_type(), Dependency, DownloadSource, ArchiveSource
    Execution:    ExecutionContext, ProcessHandle, ProcessResult
    Tasks:        Build, TaskRegistry, TaskBuilder, task()
"""

from .build import Build, load_build_script
from .dependencies import (
    NONE_TYPE,
    ArchiveSource,
    Dependency,
    DependencyType,
    DownloadSource,
    FileSource,
    Once,
    dependency_type,
)
from .errors import AbuildError, BuildStepError, ConfigurationError
from .execution import (
    ContextClosedError,
    ExecutionContext,
    ProcessFailure,
    ProcessHandle,
    ProcessResult,
)
from .fetch import ExtractionError, extract, fetch
from .files import FilePool, PrefixedPool, file_pool, install, output_path, prefixed
from .handlers import NONE, CustomHandler, PoolProcessor, SourceHandler, custom_handler, custom_processor
from .modules import (
    DependenciesBuilder,
    JoinedModules,
    Module,
    ModuleGroup,
    SourcesBuilder,
    join,
    module,
)
from .patterns import SourcePattern, compile_pattern
from .pipeline import each_source, process_sources
from .properties import PropertyFormatError, PropertyStore
from .tasks import (
    Task,
    TaskBuilder,
    TaskGraphError,
    TaskRecursionError,
    TaskRegistry,
    TaskSelectionError,
    UnknownTaskError,
    UnresolvedTaskError,
    task,
)
from .version import __version__

__all__ = [
    "AbuildError",
    "ArchiveSource",
    "Build",
    "BuildStepError",
    "ConfigurationError",
    "ContextClosedError",
    "CustomHandler",
    "DependenciesBuilder",
    "Dependency",
    "DependencyType",
    "DownloadSource",
    "ExecutionContext",
    "ExtractionError",
    "FilePool",
    "FileSource",
    "JoinedModules",
    "Module",
    "ModuleGroup",
    "NONE",
    "NONE_TYPE",
    "Once",
    "PoolProcessor",
    "PrefixedPool",
    "ProcessFailure",
    "ProcessHandle",
    "ProcessResult",
    "PropertyFormatError",
    "PropertyStore",
    "SourceHandler",
    "SourcePattern",
    "SourcesBuilder",
    "Task",
    "TaskBuilder",
    "TaskGraphError",
    "TaskRecursionError",
    "TaskRegistry",
    "TaskSelectionError",
    "UnknownTaskError",
    "UnresolvedTaskError",
    "__version__",
    "compile_pattern",
    "custom_handler",
    "custom_processor",
    "dependency_type",
    "each_source",
    "extract",
    "fetch",
    "file_pool",
    "install",
    "join",
    "load_build_script",
    "module",
    "output_path",
    "prefixed",
    "process_sources",
    "task",
]
