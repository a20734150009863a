"""
Availability Evaluator: decides whether a manifest satisfies a requirement.

Every required component must be available for every required target, with
one exception: platform-restricted components (see platforms.py) are only
checked when the requirement targets exactly one of their home platforms and
that platform is the host. A component missing from the manifest altogether
always fails the check.
"""

from typing import Iterable, Mapping, Optional

from .enums import ErrorCode
from .exceptions import InvalidConfigurationError, MalformedManifestError
from .models import Manifest, Requirement
from .platforms import PLATFORM_RESTRICTED_COMPONENTS

# component -> targets it must be available for
AvailabilityPlan = dict[str, frozenset[str]]

# (component, target); target is None when the component is absent altogether
MissingPair = tuple[str, Optional[str]]


class AvailabilityEvaluator:
    """Checks component availability in manifests."""

    def __init__(
        self,
        restricted_components: Mapping[str, frozenset[str]] = PLATFORM_RESTRICTED_COMPONENTS,
    ) -> None:
        self._restricted = dict(restricted_components)

    def required_targets(
        self,
        component: str,
        targets: frozenset[str],
        host_target: Optional[str],
    ) -> frozenset[str]:
        """
        Targets a component has to be available for.

        Args:
            component: Component name
            targets: Requirement target set
            host_target: Host triple

        Returns:
            targets for unrestricted components; for restricted ones the empty
            set, or {host_target} when targets is exactly the host and the
            host is a home platform of the component
        """
        home = self._restricted.get(component)
        if home is None:
            return targets
        if targets == frozenset({host_target}) and host_target in home:
            return targets
        return frozenset()

    def build_plan(
        self,
        components: Iterable[str],
        targets: frozenset[str],
        host_target: Optional[str],
    ) -> AvailabilityPlan:
        """
        Compute the required targets of each component.

        Restricted components stay in the plan with an empty target set so
        their presence in the manifest is still checked.

        Raises:
            InvalidConfigurationError: If no component is left to check on any target
        """
        plan = {
            component: self.required_targets(component, targets, host_target)
            for component in components
        }
        if not any(plan.values()):
            raise InvalidConfigurationError(
                code=ErrorCode.INVALID_CONFIGURATION.value,
                message="No components left to check after excluding platform-restricted ones",
                details={
                    "components": sorted(plan),
                    "targets": sorted(targets),
                    "host_target": host_target,
                },
            )
        return plan

    def resolve_components(self, manifest: Manifest, requirement: Requirement) -> frozenset[str]:
        """
        Component names a requirement asks for in a given manifest.

        Profile members are taken from the manifest's profile table; extra
        components are mapped through the manifest's rename table, so 'clippy'
        resolves to 'clippy-preview' where the manifest says so.

        Raises:
            MalformedManifestError: If the manifest lacks the requested profile
        """
        components: set[str] = set()

        if requirement.profile is not None:
            members = manifest.profiles.get(requirement.profile.value)
            if members is None:
                raise MalformedManifestError(
                    code=ErrorCode.PARSE_ERROR.value,
                    message=(
                        f"Manifest for {manifest.channel.value} {manifest.date.isoformat()} "
                        f"has no profile {requirement.profile.value!r}"
                    ),
                    details={"profiles": sorted(manifest.profiles)},
                )
            components.update(members)

        for name in requirement.components:
            components.add(manifest.renames.get(name, name))

        return frozenset(components)

    def find_missing(self, manifest: Manifest, plan: AvailabilityPlan) -> list[MissingPair]:
        """List every (component, target) pair the manifest fails to provide."""
        missing: list[MissingPair] = []
        for component in sorted(plan):
            if not manifest.has_package(component):
                missing.append((component, None))
                continue
            package = manifest.packages[component]
            for target in sorted(plan[component]):
                if not package.is_available(target):
                    missing.append((component, target))
        return missing

    def is_satisfied(
        self,
        manifest: Manifest,
        components: Iterable[str],
        targets: frozenset[str],
        host_target: Optional[str],
    ) -> bool:
        """Check whether a manifest provides every component for every required target."""
        plan = self.build_plan(components, targets, host_target)
        return not self.find_missing(manifest, plan)
