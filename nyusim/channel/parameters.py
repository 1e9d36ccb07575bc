"""
Statistical parameter tables for cluster generation.

Values follow 3GPP TR 38.901 Table 7.5-6 (parts 1-3) and the angular
scaling factors of Tables 7.5-2 and 7.5-4. Frequencies are in GHz,
distances and heights in meters, angles in degrees, delays in seconds.
"""

import math
from dataclasses import dataclass

import numpy as np

from ..core.config import ChannelConfig, Scenario
from ..core.errors import ConfigurationError
from .condition import ChannelCondition
from .link import LinkGeometry

# Ray offset angles within a cluster (Table 7.5-3)
RAY_OFFSETS = np.array([
    0.0447, -0.0447, 0.1413, -0.1413, 0.2492, -0.2492, 0.3715, -0.3715,
    0.5129, -0.5129, 0.6797, -0.6797, 0.8844, -0.8844, 1.1481, -1.1481,
    1.5195, -1.5195, 2.1551, -2.1551
])

# Scaling factors for azimuth angle generation, keyed by cluster count
C_PHI_NLOS = {4: 0.779, 5: 0.860, 8: 1.018, 10: 1.090, 11: 1.123, 12: 1.146,
              14: 1.190, 15: 1.211, 16: 1.226, 19: 1.273, 20: 1.289, 25: 1.358}

# Scaling factors for zenith angle generation, keyed by cluster count
C_THETA_NLOS = {8: 0.889, 10: 0.957, 11: 1.031, 12: 1.104, 15: 1.1088,
                19: 1.184, 20: 1.178, 25: 1.282}

MAX_AZIMUTH_SPREAD = 104.0
MAX_ZENITH_SPREAD = 52.0


@dataclass(frozen=True)
class ClusterParameters:
    """Frequency independent cluster statistics of a scenario/condition."""
    r_tau: float
    mu_xpr: float
    sigma_xpr: float
    num_clusters: int
    rays_per_cluster: int
    c_asd: float
    c_asa: float
    c_zsa: float
    shadowing_std: float  # per-cluster shadowing, dB
    mu_k: float = 0.0
    sigma_k: float = 0.0


# (scenario, condition tag) -> ClusterParameters
CLUSTER_TABLE = {
    (Scenario.UMI, "LOS"): ClusterParameters(3.0, 9, 3, 12, 20, 3, 17, 7, 3, mu_k=9, sigma_k=5),
    (Scenario.UMI, "NLOS"): ClusterParameters(2.1, 8, 3, 19, 20, 10, 22, 7, 3),
    (Scenario.UMI, "O2I"): ClusterParameters(2.2, 9, 5, 12, 20, 5, 8, 3, 4),
    (Scenario.UMA, "LOS"): ClusterParameters(2.5, 8, 4, 12, 20, 5, 11, 7, 3, mu_k=9, sigma_k=3.5),
    (Scenario.UMA, "NLOS"): ClusterParameters(2.3, 7, 3, 20, 20, 2, 15, 7, 3),
    (Scenario.UMA, "O2I"): ClusterParameters(2.2, 9, 5, 12, 20, 5, 8, 3, 4),
    (Scenario.RMA, "LOS"): ClusterParameters(3.8, 12, 4, 11, 20, 2, 3, 3, 3, mu_k=7, sigma_k=4),
    (Scenario.RMA, "NLOS"): ClusterParameters(1.7, 7, 3, 10, 20, 2, 3, 3, 3),
    (Scenario.RMA, "O2I"): ClusterParameters(1.7, 7, 3, 10, 20, 2, 3, 3, 3),
    (Scenario.INH, "LOS"): ClusterParameters(3.6, 11, 4, 15, 20, 5, 8, 9, 6, mu_k=7, sigma_k=4),
    (Scenario.INH, "NLOS"): ClusterParameters(3.0, 10, 4, 19, 20, 5, 11, 9, 3),
    (Scenario.INF, "LOS"): ClusterParameters(2.7, 12, 6, 25, 20, 5, 8, 9, 4, mu_k=7, sigma_k=8),
    (Scenario.INF, "NLOS"): ClusterParameters(3.0, 11, 6, 25, 20, 5, 8, 9, 3),
}


@dataclass(frozen=True)
class LargeScaleParameters:
    """Log-normal statistics (mean, std of log10 values) of a link's spreads."""
    mu_lg_ds: float
    sigma_lg_ds: float
    mu_lg_asd: float
    sigma_lg_asd: float
    mu_lg_asa: float
    sigma_lg_asa: float
    mu_lg_zsa: float
    sigma_lg_zsa: float
    mu_lg_zsd: float
    sigma_lg_zsd: float
    zod_offset: float
    cluster: ClusterParameters


def condition_tag(scenario: Scenario, condition: ChannelCondition) -> str:
    if condition.outdoor_to_indoor and scenario.is_outdoor:
        return "O2I"
    return "LOS" if condition.is_los else "NLOS"


def get_parameters(config: ChannelConfig, condition: ChannelCondition,
                   geometry: LinkGeometry) -> LargeScaleParameters:
    """
    Look up the statistics for a link.

    Raises:
        ConfigurationError: if the scenario has no table for the condition
    """
    scenario = config.scenario
    tag = condition_tag(scenario, condition)
    cluster = CLUSTER_TABLE.get((scenario, tag))
    if cluster is None:
        raise ConfigurationError(f"No cluster parameter table for {scenario.value}/{tag}")
    if cluster.num_clusters not in C_PHI_NLOS or cluster.num_clusters not in C_THETA_NLOS:
        raise ConfigurationError(f"No angular scaling factor for {cluster.num_clusters} clusters")

    builders = {
        Scenario.UMI: _umi_parameters,
        Scenario.UMA: _uma_parameters,
        Scenario.RMA: _rma_parameters,
        Scenario.INH: _inh_parameters,
        Scenario.INF: _inf_parameters,
    }
    spreads, zsd = builders[scenario](config, tag, condition.is_los, geometry)
    return LargeScaleParameters(*spreads, *zsd, cluster=cluster)


def _umi_parameters(config, tag, los, geometry):
    fc = max(config.frequency_ghz, 2.0)
    lf = math.log10(1 + fc)
    d2 = geometry.distance_2d
    h_bs, h_ut = geometry.bs_height, geometry.ut_height

    if los:
        zsd = (max(-0.21, -14.8 * (d2 / 1000) + 0.01 * abs(h_ut - h_bs) + 0.83), 0.35, 0.0)
    else:
        zsd = (max(-0.5, -3.1 * (d2 / 1000) + 0.01 * max(h_ut - h_bs, 0) + 0.2), 0.35,
               -10 ** (-1.5 * math.log10(max(10.0, d2)) + 3.3))

    if tag == "O2I":
        return (-6.62, 0.32, 1.25, 0.42, 1.76, 0.16, 1.01, 0.43), zsd
    if los:
        return (-0.24 * lf - 7.14, 0.38,
                -0.05 * lf + 1.21, 0.41,
                -0.08 * lf + 1.73, 0.014 * lf + 0.28,
                -0.1 * lf + 0.73, -0.04 * lf + 0.34), zsd
    return (-0.24 * lf - 6.83, 0.16 * lf + 0.28,
            -0.23 * lf + 1.53, 0.11 * lf + 0.33,
            -0.08 * lf + 1.81, 0.05 * lf + 0.3,
            -0.04 * lf + 0.92, -0.07 * lf + 0.41), zsd


def _uma_parameters(config, tag, los, geometry):
    fc = max(config.frequency_ghz, 6.0)
    lf = math.log10(fc)
    d2 = geometry.distance_2d
    h_ut = geometry.ut_height

    if los:
        zsd = (max(-0.5, -2.1 * (d2 / 1000) - 0.01 * (h_ut - 1.5) + 0.75), 0.40, 0.0)
    else:
        offset = (7.66 * lf - 5.96) - 10 ** ((0.208 * lf - 0.782) * math.log10(max(25.0, d2))
                                             - 0.13 * lf + 2.03 - 0.07 * (h_ut - 1.5))
        zsd = (max(-0.5, -2.1 * (d2 / 1000) - 0.01 * (h_ut - 1.5) + 0.9), 0.49, offset)

    if tag == "O2I":
        return (-6.62, 0.32, 1.25, 0.42, 1.76, 0.16, 1.01, 0.43), zsd
    if los:
        return (-6.955 - 0.0963 * lf, 0.66,
                1.06 + 0.1114 * lf, 0.28,
                1.81, 0.20,
                0.95, 0.16), zsd
    return (-6.28 - 0.204 * lf, 0.39,
            1.5 - 0.1144 * lf, 0.28,
            2.08 - 0.27 * lf, 0.11,
            -0.3236 * lf + 1.512, 0.16), zsd


def _rma_parameters(config, tag, los, geometry):
    d2 = geometry.distance_2d
    h_bs, h_ut = geometry.bs_height, geometry.ut_height

    if los:
        zsd = (max(-1.0, -0.17 * (d2 / 1000) - 0.01 * (h_ut - 1.5) + 0.22), 0.34, 0.0)
    else:
        offset = math.degrees(math.atan((35 - 3.5) / d2) - math.atan((35 - 1.5) / d2))
        zsd = (max(-1.0, -0.19 * (d2 / 1000) - 0.01 * (h_ut - 1.5) + 0.28), 0.30, offset)

    if tag == "O2I":
        return (-7.47, 0.24, 0.67, 0.18, 1.66, 0.21, 0.93, 0.22), zsd
    if los:
        return (-7.49, 0.55, 0.90, 0.38, 1.52, 0.24, 0.47, 0.40), zsd
    return (-7.43, 0.48, 0.95, 0.45, 1.52, 0.13, 0.58, 0.37), zsd


def _inh_parameters(config, tag, los, geometry):
    fc = max(config.frequency_ghz, 6.0)
    lf = math.log10(1 + fc)
    if los:
        return (-0.01 * lf - 7.692, 0.18,
                1.60, 0.18,
                -0.19 * lf + 1.781, 0.12 * lf + 0.119,
                -0.26 * lf + 1.44, -0.04 * lf + 0.264), \
               (-1.43 * lf + 2.228, 0.13 * lf + 0.30, 0.0)
    return (-0.28 * lf - 7.173, 0.10 * lf + 0.055,
            1.62, 0.25,
            -0.11 * lf + 1.863, 0.12 * lf + 0.059,
            -0.15 * lf + 1.387, -0.09 * lf + 0.746), \
           (1.08, 0.36, 0.0)


def _inf_parameters(config, tag, los, geometry):
    lf = math.log10(1 + config.frequency_ghz)
    volume_to_surface = config.hall_volume / config.hall_surface
    if los:
        return (math.log10(26 * volume_to_surface + 14) - 9.35, 0.15,
                1.56, 0.25,
                -0.18 * lf + 1.78, 0.12 * lf + 0.20,
                -0.2 * lf + 1.50, 0.35), \
               (1.35, 0.35, 0.0)
    return (math.log10(30 * volume_to_surface + 32) - 9.44, 0.19,
            1.57, 0.20,
            1.72, 0.30,
            -0.13 * lf + 1.45, 0.45), \
           (1.20, 0.55, 0.0)
