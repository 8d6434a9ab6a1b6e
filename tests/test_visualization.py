import matplotlib

matplotlib.use("Agg")

import simpy

from ppbp_sim.config import PPBPConfig
from ppbp_sim.core.simulator import PPBPSimulator
from ppbp_sim.utils.visualization import (
    plot_active_bursts,
    plot_hurst_comparison,
    plot_throughput,
)


def test_plots_are_saved(tmp_path):
    simulator = PPBPSimulator(simpy.Environment(), seed=1)
    config = PPBPConfig()
    simulator.add_sink(config.remote)
    simulator.add_application(config, name="gen")
    simulator.run(1.0)

    bursts = tmp_path / "plots" / "bursts.png"
    throughput = tmp_path / "plots" / "throughput.png"
    hurst = tmp_path / "hurst.png"
    plot_active_bursts(simulator, filename=str(bursts), show=False)
    plot_throughput(simulator, filename=str(throughput), show=False)
    plot_hurst_comparison({0.7: 0.72, 0.9: None}, filename=str(hurst), show=False)

    assert bursts.exists()
    assert throughput.exists()
    assert hurst.exists()
