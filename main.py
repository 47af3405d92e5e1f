#!/usr/bin/env python3
import asyncio, random, sys
from config.logging_config import configure
from config.app_config import settings
from weatherstation.sensors import SensorEvent
from weatherstation.services import TelemetryPublisher

async def simulate_sensors(publisher: TelemetryPublisher):
    """Random-walk temperature and pressure readings at a different rate than publishing."""
    temperature, pressure = 21.0, 1013.25
    temperature_listener = publisher.get_temperature_listener()
    pressure_listener = publisher.get_pressure_listener()
    while True:
        temperature = round(temperature + random.uniform(-0.2, 0.2), 1)
        pressure = round(pressure + random.uniform(-0.5, 0.5), 2)
        temperature_listener.on_sensor_changed(SensorEvent(values=[temperature], sensor="bmx280-temperature"))
        if random.random() < 0.5:
            pressure_listener.on_sensor_changed(SensorEvent(values=[pressure], sensor="bmx280-pressure"))
        await asyncio.sleep(random.uniform(0.3, 2.5))

async def async_main():
    configure()
    settings.validate()
    publisher = TelemetryPublisher(
        app_name=settings.APP_NAME,
        topic=settings.MQTT_TOPIC,
        device_id=settings.DEVICE_ID,
        server_uri=settings.MQTT_SERVER_URI,
        interval_seconds=settings.PUBLISH_INTERVAL,
    )
    publisher.start()
    try:
        await simulate_sensors(publisher)
    finally:
        publisher.close()

if __name__ == "__main__":
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")
