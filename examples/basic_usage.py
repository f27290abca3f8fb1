"""
Basic usage example of the VPP aggregation core.
This example demonstrates core functionality including:
- Configuring principals, reserve and genesis devices
- Registering and verifying production reports
- Forecasting and supply balancing
- Event handling
"""

from vpp_aggregation import AggregationContract, ManualTimeSource, StaticGovernance
from vpp_aggregation.config import AggregationConfig, DeviceSeed
from vpp_aggregation.events import Event
from vpp_aggregation.exceptions import AggregationError


def print_event(event: Event) -> None:
    """Print the event details."""
    print(f"Event received: {event.type.name} by {event.caller}")
    if event.details:
        print("  Details:", event.details)


def main():
    config = AggregationConfig(name="Basic Aggregation Example")
    config.genesis.devices = [DeviceSeed(device_id) for device_id in range(1, 6)]
    config.genesis.plants = [1]
    config.setup_logging()

    clock = ManualTimeSource(start=0)
    governance = StaticGovernance(approved=[1])
    contract = AggregationContract.from_config(config, time_source=clock, governance=governance)
    contract.subscribe(print_event)

    owner = config.principals.owner
    oracle = config.principals.oracle

    # Ten-minute ticks of production from five devices
    report_id = 0
    for tick in range(6):
        clock.advance(600)
        for device_id in range(1, 6):
            report_id += 1
            contract.register_device_energy(device_id, 100 * device_id, report_id, "device-gateway")
            contract.verify_report(device_id, report_id, oracle)

    print(f"\nTotal VPP energy: {contract.get_total_vpp_energy()} kWh")
    print(f"Forecast: {contract.generate_forecast(1, owner)} kWh")

    contract.update_reserve_threshold(2000, 1, owner)
    try:
        contract.balance_supply(1, 10000, "grid-operator")
    except AggregationError as e:
        print(f"Balancing refused: {e.code.name}")

    contract.balance_supply(1, 5000, "grid-operator")
    print(f"Total after balancing: {contract.get_total_vpp_energy()} kWh")
    print(f"Device/global drift: {contract.get_device_energy_drift()} kWh")


if __name__ == "__main__":
    main()
