# Daily computation kernel exports for WorldSim
# Layer 3: Simulation Engine

from worldsim.kernels import agriculture, energy, water
from worldsim.kernels.agriculture import project_yield
from worldsim.kernels.energy import compute_energy_day
from worldsim.kernels.water import compute_water_day

# Domain tag -> per-region kernel. Each takes (region, rows, scenario) and
# returns that region's daily records in date order.
KERNELS = {
    "energy": energy.simulate_region,
    "water": water.simulate_region,
    "agriculture": agriculture.simulate_region,
}


def get_kernel(domain):
    """Get the per-region kernel for a domain tag.

    Args:
        domain: "energy", "water" or "agriculture"

    Returns:
        Kernel function (region, rows, scenario) -> list of daily records

    Raises:
        KeyError: If domain not found
    """
    if domain not in KERNELS:
        valid = ", ".join(KERNELS.keys())
        raise KeyError(f"Unknown domain: '{domain}'. Available: {valid}")
    return KERNELS[domain]


__all__ = [
    "KERNELS",
    "get_kernel",
    "compute_energy_day",
    "compute_water_day",
    "project_yield",
]
