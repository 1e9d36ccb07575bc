"""
Drop-based multipath channel matrix generation.

Each drop draws clusters with delays, powers and angles, expands them into
rays and computes the per-element channel coefficients H[u, s, n] between
the receive elements u and transmit elements s for every cluster n.
"""

import copy
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from ..core.config import ChannelConfig
from ..core.errors import ConfigurationError, PreconditionError
from ..core.random import CHANNEL_STREAM, RandomStreams
from ..mobility.node import NodeMobility
from .base import MatrixGenerator
from .condition import ChannelCondition, ConditionModel
from .link import SPEED_OF_LIGHT, LinkGeometry, LinkKey, wrap_azimuth
from .parameters import (C_PHI_NLOS, C_THETA_NLOS, MAX_AZIMUTH_SPREAD, MAX_ZENITH_SPREAD,
                         RAY_OFFSETS, condition_tag, get_parameters)

logger = logging.getLogger(__name__)

CLUSTER_POWER_THRESHOLD_DB = 25.0


@dataclass(frozen=True, eq=False)
class ChannelMatrix:
    """
    One realization of the multipath channel of a link.

    Angles are in degrees, delays in seconds. The coefficients are indexed
    [rx element, tx element, cluster] for the node order of node_ids, i.e.
    node_ids[0] transmits and node_ids[1] receives.
    """
    link_key: LinkKey
    node_ids: Tuple[int, int]
    condition: ChannelCondition
    delays: np.ndarray
    powers: np.ndarray
    azimuth_departure: np.ndarray
    zenith_departure: np.ndarray
    azimuth_arrival: np.ndarray
    zenith_arrival: np.ndarray
    ray_azimuth_departure: np.ndarray
    ray_zenith_departure: np.ndarray
    ray_azimuth_arrival: np.ndarray
    ray_zenith_arrival: np.ndarray
    cross_pol_ratios: np.ndarray
    initial_phases: np.ndarray
    k_factor_db: Optional[float]
    delay_spread: float
    coefficients: np.ndarray
    generation_time: float
    rng_state: dict

    @property
    def cluster_count(self) -> int:
        return len(self.delays)

    @property
    def rays_per_cluster(self) -> int:
        return self.ray_azimuth_arrival.shape[1]

    @property
    def antenna_sizes(self) -> Tuple[int, int]:
        """Number of (tx, rx) elements for the generating node order."""
        return self.coefficients.shape[1], self.coefficients.shape[0]

    def is_reverse(self, tx_id: int) -> bool:
        """True if tx_id was the receiving node when the matrix was generated."""
        return tx_id != self.node_ids[0]

    def oriented(self, tx_id: int):
        """
        Coefficients and cluster angles seen from a given transmitter.

        Returns:
            (H[rx, tx, n], tx azimuth, tx zenith, rx azimuth, rx zenith)
        """
        if not self.is_reverse(tx_id):
            return (self.coefficients, self.azimuth_departure, self.zenith_departure,
                    self.azimuth_arrival, self.zenith_arrival)
        return (self.coefficients.transpose(1, 0, 2), self.azimuth_arrival, self.zenith_arrival,
                self.azimuth_departure, self.zenith_departure)


class ChannelMatrixGenerator(MatrixGenerator):
    """
    Statistical cluster/ray channel generator with a per-link cache.

    A matrix is reused until the update period has elapsed (0 means it is
    generated once), the link condition changes, or the antenna arrays
    change size. Each regeneration replaces the cached matrix as a whole.
    """

    def __init__(self, config: ChannelConfig, condition_model: ConditionModel,
                 streams: Optional[RandomStreams] = None,
                 clock: Optional[Callable[[], float]] = None):
        config.validate()
        if condition_model is None:
            raise ConfigurationError("A channel condition model is required")
        self.config = config
        self.frequency = config.frequency
        self.wavelength = SPEED_OF_LIGHT / config.frequency
        self.update_period = config.channel_update_period
        self.condition_model = condition_model
        self.streams = streams if streams is not None else condition_model.streams
        self.clock = clock if clock is not None else (lambda: 0.0)
        self._cache: Dict[LinkKey, ChannelMatrix] = {}

        logger.info(f"Channel matrix generator created for {config.scenario.value} at "
                    f"{config.frequency_ghz:.3f} GHz (update period {self.update_period}s)")

    def get_matrix(self, a: NodeMobility, b: NodeMobility, a_antenna, b_antenna,
                   now: Optional[float] = None,
                   condition: Optional[ChannelCondition] = None) -> ChannelMatrix:
        """
        Get the channel matrix of the link between two nodes.

        Args:
            a: Transmitting node mobility
            b: Receiving node mobility
            a_antenna: Antenna array of node a
            b_antenna: Antenna array of node b
            now: Simulation time in seconds (defaults to the model clock)
            condition: Link condition; queried from the condition model if omitted

        Returns:
            The cached matrix if still valid, otherwise a new drop
        """
        if a_antenna is None or b_antenna is None:
            raise PreconditionError("Antenna arrays of both endpoints are required")
        now = self.clock() if now is None else now
        key = LinkKey.of(a, b, self.frequency)
        if condition is None:
            condition = self.condition_model.get_condition(a, b, now)

        cached = self._cache.get(key)
        if cached is not None and not self._needs_update(cached, a, a_antenna, b_antenna,
                                                         condition, now):
            return cached

        matrix = self._generate(key, a, b, a_antenna, b_antenna, condition, now, cached)
        self._cache[key] = matrix
        return matrix

    def _needs_update(self, matrix: ChannelMatrix, a: NodeMobility, a_antenna, b_antenna,
                      condition: ChannelCondition, now: float) -> bool:
        if not condition.same_state(matrix.condition):
            logger.debug(f"Link {matrix.node_ids}: condition changed, new drop")
            return True
        sizes = (a_antenna.num_elements, b_antenna.num_elements)
        if matrix.is_reverse(a.node_id):
            sizes = sizes[::-1]
        if sizes != matrix.antenna_sizes:
            logger.debug(f"Link {matrix.node_ids}: antenna size changed, new drop")
            return True
        if self.update_period == 0:
            return False
        return now - matrix.generation_time >= self.update_period

    def clear(self):
        self._cache.clear()

    def _generate(self, key: LinkKey, a: NodeMobility, b: NodeMobility, a_antenna, b_antenna,
                  condition: ChannelCondition, now: float,
                  previous: Optional[ChannelMatrix]) -> ChannelMatrix:
        rng = self.streams.stream(CHANNEL_STREAM, *key.stream_key())
        rng_state = copy.deepcopy(rng.bit_generator.state)

        geometry = LinkGeometry.between(a, b, self.config.min_distance)
        params = get_parameters(self.config, condition, geometry)
        cluster = params.cluster
        los = condition.is_los and condition_tag(self.config.scenario, condition) == "LOS"

        # large scale parameters
        ds = 10 ** (params.mu_lg_ds + params.sigma_lg_ds * rng.standard_normal())
        asd = min(10 ** (params.mu_lg_asd + params.sigma_lg_asd * rng.standard_normal()), MAX_AZIMUTH_SPREAD)
        asa = min(10 ** (params.mu_lg_asa + params.sigma_lg_asa * rng.standard_normal()), MAX_AZIMUTH_SPREAD)
        zsa = min(10 ** (params.mu_lg_zsa + params.sigma_lg_zsa * rng.standard_normal()), MAX_ZENITH_SPREAD)
        zsd = min(10 ** (params.mu_lg_zsd + params.sigma_lg_zsd * rng.standard_normal()), MAX_ZENITH_SPREAD)
        k_factor = cluster.mu_k + cluster.sigma_k * rng.standard_normal() if los else None

        delays, powers, nlos_powers = self._cluster_delays_and_powers(rng, cluster, ds, k_factor)

        ratio = powers / powers.max()
        n_total = cluster.num_clusters
        c_phi = C_PHI_NLOS[n_total]
        c_theta = C_THETA_NLOS[n_total]
        if los:
            k = k_factor
            c_phi *= 1.1035 - 0.028 * k - 0.002 * k ** 2 + 0.0001 * k ** 3
            c_theta *= 1.3086 + 0.0339 * k - 0.0077 * k ** 2 + 0.0002 * k ** 3

        phi_prime = 2 * np.sqrt(-np.log(ratio)) / (1.4 * c_phi)
        theta_prime = -np.log(ratio) / c_theta
        zoa_los = 90.0 if condition.outdoor_to_indoor else geometry.zenith_ba
        zod_offset = 0.0 if los else params.zod_offset

        aoa = self._cluster_angles(rng, asa * phi_prime, asa, geometry.azimuth_ba, los)
        aod = self._cluster_angles(rng, asd * phi_prime, asd, geometry.azimuth_ab, los)
        zoa = self._cluster_angles(rng, zsa * theta_prime, zsa, zoa_los, los)
        zod = self._cluster_angles(rng, zsd * theta_prime, zsd, geometry.zenith_ab + zod_offset, los)

        # rays, with random coupling of the departure/zenith rays to the arrival rays
        m_rays = cluster.rays_per_cluster
        offsets = RAY_OFFSETS[:m_rays]
        ray_aoa = aoa[:, None] + cluster.c_asa * offsets[None, :]
        ray_aod = aod[:, None] + cluster.c_asd * offsets[None, :]
        ray_zoa = zoa[:, None] + cluster.c_zsa * offsets[None, :]
        ray_zod = zod[:, None] + (3.0 / 8.0) * 10 ** params.mu_lg_zsd * offsets[None, :]
        for n in range(len(delays)):
            ray_aod[n] = ray_aod[n, rng.permutation(m_rays)]
            ray_zoa[n] = ray_zoa[n, rng.permutation(m_rays)]
            ray_zod[n] = ray_zod[n, rng.permutation(m_rays)]

        xpr = 10 ** (rng.normal(cluster.mu_xpr, cluster.sigma_xpr, size=ray_aoa.shape) / 10)
        phases = rng.uniform(-np.pi, np.pi, size=ray_aoa.shape + (4,))

        ray_aoa, ray_aod = wrap_azimuth(ray_aoa), wrap_azimuth(ray_aod)
        ray_zoa, ray_zod = reflect_zenith(ray_zoa), reflect_zenith(ray_zod)

        coefficients = self._channel_coefficients(
            a_antenna, b_antenna, nlos_powers, ray_aod, ray_zod, ray_aoa, ray_zoa,
            xpr, phases, geometry, k_factor)

        generation_time = now
        if previous is not None and generation_time <= previous.generation_time:
            # generation times of a link are strictly increasing
            generation_time = float(np.nextafter(previous.generation_time, np.inf))

        matrix = ChannelMatrix(
            link_key=key,
            node_ids=(a.node_id, b.node_id),
            condition=condition,
            delays=_frozen(delays),
            powers=_frozen(powers),
            azimuth_departure=_frozen(wrap_azimuth(aod)),
            zenith_departure=_frozen(reflect_zenith(zod)),
            azimuth_arrival=_frozen(wrap_azimuth(aoa)),
            zenith_arrival=_frozen(reflect_zenith(zoa)),
            ray_azimuth_departure=_frozen(ray_aod),
            ray_zenith_departure=_frozen(ray_zod),
            ray_azimuth_arrival=_frozen(ray_aoa),
            ray_zenith_arrival=_frozen(ray_zoa),
            cross_pol_ratios=_frozen(xpr),
            initial_phases=_frozen(phases),
            k_factor_db=k_factor,
            delay_spread=ds,
            coefficients=_frozen(coefficients),
            generation_time=generation_time,
            rng_state=rng_state
        )
        logger.debug(f"New drop for link {a.node_id}->{b.node_id} at t={now}: "
                     f"{matrix.cluster_count} clusters, DS={ds * 1e9:.1f} ns, "
                     f"{'LOS' if los else 'NLOS'}")
        return matrix

    @staticmethod
    def _cluster_delays_and_powers(rng: np.random.Generator, cluster, ds: float,
                                   k_factor: Optional[float]):
        """
        Draw cluster delays and normalized powers.

        Returns:
            (delays, powers including the LOS share, powers of the scattered part)
        """
        n_total = cluster.num_clusters
        r_tau = cluster.r_tau

        # 1 - U(0,1) lies in (0, 1], keeping the logarithm finite
        tau = -r_tau * ds * np.log(1.0 - rng.uniform(size=n_total))
        tau = np.sort(tau - tau.min())

        shadowing = rng.normal(0.0, cluster.shadowing_std, size=n_total)
        nlos_powers = np.exp(-tau * (r_tau - 1) / (r_tau * ds)) * 10 ** (-shadowing / 10)
        nlos_powers = nlos_powers / nlos_powers.sum()

        if k_factor is not None:
            k_linear = 10 ** (k_factor / 10)
            powers = nlos_powers / (k_linear + 1)
            powers[0] += k_linear / (k_linear + 1)
            c_tau = 0.7705 - 0.0433 * k_factor + 0.0002 * k_factor ** 2 + 0.000017 * k_factor ** 3
            delays = tau / c_tau
        else:
            powers = nlos_powers.copy()
            delays = tau

        power_db = 10 * np.log10(powers)
        keep = power_db >= power_db.max() - CLUSTER_POWER_THRESHOLD_DB
        delays = delays[keep] - delays[keep][0]
        powers = powers[keep] / powers[keep].sum()
        nlos_powers = nlos_powers[keep] / nlos_powers[keep].sum()
        return delays, powers, nlos_powers

    @staticmethod
    def _cluster_angles(rng: np.random.Generator, spread_prime: np.ndarray, spread: float,
                        los_angle: float, los: bool) -> np.ndarray:
        """Cluster centre angles around the LOS direction (degrees)."""
        sign = rng.choice([-1.0, 1.0], size=len(spread_prime))
        jitter = rng.normal(0.0, spread / 7.0, size=len(spread_prime))
        angles = sign * spread_prime + jitter
        if los:
            # the first cluster is anchored on the LOS direction
            return angles - angles[0] + los_angle
        return angles + los_angle

    def _channel_coefficients(self, tx_antenna, rx_antenna, nlos_powers: np.ndarray,
                              ray_aod: np.ndarray, ray_zod: np.ndarray,
                              ray_aoa: np.ndarray, ray_zoa: np.ndarray,
                              xpr: np.ndarray, phases: np.ndarray,
                              geometry: LinkGeometry, k_factor: Optional[float]) -> np.ndarray:
        tx_locations = _element_locations(tx_antenna)
        rx_locations = _element_locations(rx_antenna)
        m_rays = ray_aoa.shape[1]

        aod, zod = np.radians(ray_aod), np.radians(ray_zod)
        aoa, zoa = np.radians(ray_aoa), np.radians(ray_zoa)
        rx_response = np.exp(2j * np.pi * (unit_vectors(zoa, aoa) @ rx_locations.T))
        tx_response = np.exp(2j * np.pi * (unit_vectors(zod, aod) @ tx_locations.T))

        rx_theta, rx_phi = rx_antenna.field_pattern(zoa, aoa)
        tx_theta, tx_phi = tx_antenna.field_pattern(zod, aod)
        inv_xpr = 1.0 / np.sqrt(xpr)
        polarization = (rx_theta * (np.exp(1j * phases[..., 0]) * tx_theta
                                    + inv_xpr * np.exp(1j * phases[..., 1]) * tx_phi)
                        + rx_phi * (inv_xpr * np.exp(1j * phases[..., 2]) * tx_theta
                                    + np.exp(1j * phases[..., 3]) * tx_phi))

        coefficients = np.einsum('nm,nmu,nms->usn', polarization, rx_response, tx_response)
        coefficients = coefficients * np.sqrt(nlos_powers / m_rays)[None, None, :]

        if k_factor is None:
            return coefficients

        k_linear = 10 ** (k_factor / 10)
        los_aod, los_zod = math.radians(geometry.azimuth_ab), math.radians(geometry.zenith_ab)
        los_aoa, los_zoa = math.radians(geometry.azimuth_ba), math.radians(geometry.zenith_ba)
        rx_los = np.exp(2j * np.pi * (rx_locations @ unit_vectors(los_zoa, los_aoa)))
        tx_los = np.exp(2j * np.pi * (tx_locations @ unit_vectors(los_zod, los_aod)))
        rx_theta, rx_phi = rx_antenna.field_pattern(np.array(los_zoa), np.array(los_aoa))
        tx_theta, tx_phi = tx_antenna.field_pattern(np.array(los_zod), np.array(los_aod))
        los_polarization = complex(rx_theta * tx_theta - rx_phi * tx_phi)
        los_phase = np.exp(-2j * np.pi * geometry.distance_3d / self.wavelength)

        coefficients = coefficients * math.sqrt(1.0 / (k_linear + 1))
        coefficients[:, :, 0] += (math.sqrt(k_linear / (k_linear + 1)) * los_polarization
                                  * los_phase * np.outer(rx_los, tx_los))
        return coefficients


def unit_vectors(zenith, azimuth) -> np.ndarray:
    """Spherical unit vectors for angles in radians, stacked on the last axis."""
    return np.stack([np.sin(zenith) * np.cos(azimuth),
                     np.sin(zenith) * np.sin(azimuth),
                     np.cos(zenith)], axis=-1)


def reflect_zenith(angle):
    """Map zenith angles in degrees into [0, 180]."""
    return np.abs(wrap_azimuth(np.asarray(angle, dtype=float)))


def _element_locations(antenna) -> np.ndarray:
    locations = np.asarray(antenna.get_element_locations(), dtype=float)
    if locations.ndim != 2 or locations.shape[1] != 3 or len(locations) == 0:
        raise PreconditionError(f"Antenna element locations must be an (N, 3) array, "
                                f"got shape {locations.shape}")
    return locations


def _frozen(array) -> np.ndarray:
    array = np.array(array)
    array.setflags(write=False)
    return array
