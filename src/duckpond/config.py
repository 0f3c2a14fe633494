from dataclasses import dataclass, field


@dataclass
class AppConfig:
    # --- Debugging ---
    debug: bool = False  # Show the control panel and FPS readout at startup

    # --- Logging ---
    log_level: str = "INFO"  # Minimum log level to output
    log_file: str | None = None  # Redirect logs to a file instead of the console

    # --- Window and Rendering ---
    width: int = 1280  # Initial window width
    height: int = 720  # Initial window height
    title: str = "Duck Pond"
    exposure: float = 0.5  # ACES filmic tone mapping exposure
    env_map_size: int = 128  # Edge length of each environment cube face
    env_map_taps: int = 8  # Cone filter taps per environment texel

    # --- Assets ---
    assets_dir: str = "assets"  # Root directory for the paths below
    duck_model: str = "models/Rubber_Duck.glb"
    water_normals: str = "textures/waternormals.jpg"
    quack_sound: str = "sounds/quack.mp3"
    loader_workers: int = 2  # Background threads used to decode assets

    # --- Scene ---
    scale: float = 100.0  # Duck model scale; also drives the scene ratio
    camera_fov: float = 55.0  # Vertical field of view (degrees)
    camera_near: float = 1.0
    camera_far: float = 20000.0
    camera_position: tuple = (30.0, 30.0, 100.0)  # Multiplied by ratio
    camera_target_height: float = 20.0  # Camera looks at (0, h * ratio, 0)

    # --- Duck ---
    duck_yaw: float = 0.7853981633974483  # pi / 4
    duck_baseline: float = 14.0  # Bob baseline, multiplied by ratio
    duck_bob_amplitude: float = 4.0
    duck_tilt: tuple = (0.08, 0.06)  # Sway amplitude around x and z (radians)
    duck_tilt_rate: tuple = (0.9, 1.1)  # Sway angular rate around x and z
    duck_color: tuple = (1.0, 0.82, 0.1)  # Used when the model has no colours
    duck_roughness: float = 0.4

    # --- Rod ---
    rod_size: tuple = (1.0, 1.0, 30.0)
    rod_position: tuple = (30.0, 15.0, 60.0)
    rod_color: tuple = (1.0, 1.0, 1.0)
    rod_roughness: float = 0.0
    rod_highlight: int = 0xAAAAAA  # Emissive colour while dragged
    rod_look_height: float = 20.0  # Rod aims at the duck at this height * ratio

    # --- Sky ---
    sky_turbidity: float = 10.0
    sky_rayleigh: float = 2.0
    sky_mie_coefficient: float = 0.005
    sky_mie_directional_g: float = 0.8

    # --- Water ---
    water_extent: float = 10000.0  # Edge length of the water plane
    water_color: int = 0x001E0F
    sun_color: int = 0xFFFFFF
    distortion_scale: float = 3.7
    water_size: float = 1.0
    water_time_step: float = 1.0 / 60.0  # Fixed advance per frame

    # --- Sky parameters (initial panel values) ---
    elevation: float = 2.0  # Sun elevation above the horizon (degrees)
    azimuth: float = 180.0  # Sun azimuth (degrees)
    has_stick: bool = False  # Whether the rod starts in the scene

    # --- Sound ---
    base_volume: float = 0.5  # Volume before the random offset is added
    volume_steps: int = 5  # Offset is floor(rand * steps) / 10

    # --- Speech ---
    wake_words: tuple = ("duck", "quack")
    speech_engine: str = "google"  # Recognizer backend ('google' or 'sphinx')
    speech_language: str = "en-US"
    speech_phrase_limit: float | None = 3.0  # Seconds per phrase; None = unlimited
    listen_on_start: bool = False  # Start listening without waiting for the M key

    # --- Panel ---
    panel_font: str = "fonts/FiraCode-SemiBold.ttf"
    panel_font_size: int = 16
    panel_fast_step: float = 10.0  # Step multiplier while Shift is held
    extra_fonts: list = field(
        default_factory=lambda: [
            "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
            "/Library/Fonts/Menlo.ttc",
            "C:/Windows/Fonts/consola.ttf",
        ]
    )

    @property
    def ratio(self) -> float:
        return self.scale / 100.0
