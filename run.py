import asyncio
from datetime import datetime, timezone
import time

from dotenv import load_dotenv
import hydra
from loguru import logger
from omegaconf import DictConfig, OmegaConf

from myco.config.resolvers import register_resolvers
from myco.engine import RunConfig, Simulation, WorldConfig
from myco.export import export_gif, export_png
from myco.utils.logger_setup import setup_logger
from myco.utils.serve import serve_until_signal
from myco.world import Direction


def build_simulation(cfg: DictConfig) -> Simulation:
    world = WorldConfig(**OmegaConf.to_container(cfg.world, resolve=True))
    run = RunConfig(**OmegaConf.to_container(cfg.run, resolve=True))
    simulation = Simulation(world, run)

    program = cfg.seed_program
    x, y = program.origin
    for offset, row in enumerate(program.rows):
        simulation.write_instructions((x, y + offset), list(row))
    for spawn in program.spawns:
        simulation.spawn(tuple(spawn.pos), Direction(spawn.direction))
    logger.info(
        "Seed program: {} row(s) at ({}, {}), {} organism(s)",
        program.row_count,
        x,
        y,
        len(simulation.population),
    )
    return simulation


async def run_simulation(cfg: DictConfig):
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("myco simulation")
    logger.info("=" * 80)
    logger.info(f"Start time: {datetime.now(timezone.utc).isoformat()}")

    simulation: Simulation | None = None
    try:
        logger.info("Step 1/3: Building world...")
        simulation = build_simulation(cfg)
        logger.info(f"  Seed: {simulation.get_seed()}")
        max_cycles: int | None = cfg.run.max_cycles
        logger.info(f"  Max cycles: {max_cycles if max_cycles else 'unlimited'}")

        logger.info("Step 2/3: Running until completion or signal...")
        task = asyncio.create_task(simulation.run())
        await serve_until_signal(stop_callbacks=(simulation.stop,), on_stop=(task,))

        logger.info("Step 3/3: Exporting...")
        if cfg.export.png:
            export_png(simulation, cfg.export.png, pixel_scale=cfg.export.pixel_scale)
        if cfg.export.gif:
            export_gif(
                simulation,
                cfg.export.gif,
                num_frames=cfg.export.gif_frames,
                step=cfg.export.gif_step,
            )

    except KeyboardInterrupt:
        logger.info("Simulation interrupted by user")
    except Exception as e:  # pylint: disable=broad-except
        logger.error(f"Simulation failed: {e}")
        raise
    finally:
        if simulation is not None:
            logger.info("Final status: {}", simulation.status())
        duration = time.time() - start_time
        logger.info(f"Total duration: {duration:.2f} seconds")
        logger.info(f"End time: {datetime.now(timezone.utc).isoformat()}")
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    load_dotenv()

    log_file_path = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    logger.info(
        "Working directory: {}.",
        hydra.core.hydra_config.HydraConfig.get().runtime.output_dir,
    )
    logger.info(f"Log file: {log_file_path}")
    asyncio.run(run_simulation(cfg))


if __name__ == "__main__":
    register_resolvers()
    main()
