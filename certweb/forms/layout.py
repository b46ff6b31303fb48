"""Static description of the certsuite configuration form."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GroupSpec:
    """A resizable group of form fields.

    Attributes:
        name: Form key of the group, also the key in the serialized document.
        label: Human-readable heading.
        sub_fields: One name for single groups, two for paired groups.
        config_key: Key of the group in the certsuite configuration file.
        item_key: For single groups whose configuration items are mappings
            (e.g. ``{name: ns}``), the property holding the value.
        bool_fields: Sub-fields stored as booleans in the configuration file.
    """

    name: str
    label: str
    sub_fields: tuple[str, ...] = ("value",)
    config_key: str = ""
    item_key: str | None = None
    bool_fields: tuple[str, ...] = ()

    def __post_init__(self):
        if len(self.sub_fields) not in (1, 2):
            raise ValueError(f"Group '{self.name}' must have one or two sub-fields")
        if not self.config_key:
            object.__setattr__(self, "config_key", self.name)

    @property
    def paired(self) -> bool:
        return len(self.sub_fields) == 2


@dataclass(frozen=True)
class ScalarSpec:
    """A standalone form field.

    ``config_path`` is the dotted location in the configuration file, e.g.
    ``connectAPIConfig.apiKey``.
    """

    name: str
    label: str
    config_path: str = ""
    secret: bool = False

    def __post_init__(self):
        if not self.config_path:
            object.__setattr__(self, "config_path", self.name)

    @property
    def path(self) -> tuple[str, ...]:
        return tuple(self.config_path.split("."))


@dataclass(frozen=True)
class FormLayout:
    """Groups and scalar fields making up a configuration form."""

    groups: tuple[GroupSpec, ...] = ()
    scalars: tuple[ScalarSpec, ...] = ()

    def group(self, name: str) -> GroupSpec | None:
        for spec in self.groups:
            if spec.name == name:
                return spec
        return None

    def group_for_config_key(self, config_key: str) -> GroupSpec | None:
        for spec in self.groups:
            if spec.config_key == config_key:
                return spec
        return None

    def scalar(self, name: str) -> ScalarSpec | None:
        for spec in self.scalars:
            if spec.name == name:
                return spec
        return None

    def scalar_names(self) -> list[str]:
        return [s.name for s in self.scalars]


DEFAULT_LAYOUT = FormLayout(
    groups=(
        GroupSpec("targetNameSpaces", "Target namespaces", item_key="name"),
        GroupSpec("podsUnderTestLabels", "Pods under test labels"),
        GroupSpec("operatorsUnderTestLabels", "Operators under test labels"),
        GroupSpec(
            "targetCrdFilters",
            "Target CRD filters",
            sub_fields=("nameSuffix", "scalable"),
            bool_fields=("scalable",),
        ),
        GroupSpec("managedDeployments", "Managed deployments", item_key="name"),
        GroupSpec("managedStatefulsets", "Managed statefulsets", item_key="name"),
        GroupSpec("acceptedKernelTaints", "Accepted kernel taints", item_key="module"),
        GroupSpec("skipHelmChartList", "Skip helm chart list", item_key="name"),
        GroupSpec("servicesignorelist", "Services ignore list"),
        GroupSpec(
            "skipScalingTestDeployments",
            "Skip scaling test deployments",
            sub_fields=("name", "namespace"),
        ),
        GroupSpec(
            "skipScalingTestStatefulsets",
            "Skip scaling test statefulsets",
            sub_fields=("name", "namespace"),
        ),
        GroupSpec("ValidProtocolNames", "Valid protocol names", config_key="validProtocolNames"),
    ),
    scalars=(
        ScalarSpec("ProbeDaemonSetNamespace", "Probe daemonset namespace", "probeDaemonSetNamespace"),
        ScalarSpec("CollectorAppEndPoint", "Collector app endpoint", "collectorAppEndPoint"),
        ScalarSpec("CollectorAppPassword", "Collector app password", "collectorAppPassword", secret=True),
        ScalarSpec("executedBy", "Executed by", "executedBy"),
        ScalarSpec("PartnerName", "Partner name", "partnerName"),
        ScalarSpec("key", "Connect API key", "connectAPIConfig.apiKey", secret=True),
        ScalarSpec("projectID", "Connect project ID", "connectAPIConfig.projectID"),
        ScalarSpec("baseURL", "Connect API base URL", "connectAPIConfig.baseURL"),
        ScalarSpec("proxyURL", "Connect API proxy URL", "connectAPIConfig.proxyURL"),
        ScalarSpec("proxyPort", "Connect API proxy port", "connectAPIConfig.proxyPort"),
    ),
)
