from __future__ import annotations

from xb.build.options import BuildOptions
from xb.build.targets import Registry, Target, default_registry
from xb.core.result import Ok


def toolchain_target(target_id: str, program: str | None = None) -> Target:
    return Target(
        id=target_id,
        label=target_id.upper(),
        description=f"{target_id} test target",
        backend="toolchain",
        program=program or f"build-{target_id}",
    )


def options(
    *,
    mode: str = "release",
    features: tuple[str, ...] = ("ffi",),
    parallel: bool = False,
    verbose: bool = False,
) -> BuildOptions:
    result = BuildOptions.create(
        mode=mode,
        features=features,
        allowed_features=("ffi", "qlog", "sfv"),
        parallel=parallel,
        verbose=verbose,
    )
    assert isinstance(result, Ok)
    return result.value


def catalog_target(target_id: str, registry: Registry | None = None) -> Target:
    result = (registry or default_registry()).get(target_id)
    assert isinstance(result, Ok)
    return result.value
