TONEMAP = """
uniform float exposure;

vec3 rrt_odt_fit(vec3 v){
    vec3 a = v * (v + 0.0245786) - 0.000090537;
    vec3 b = v * (0.983729 * v + 0.4329510) + 0.238081;
    return a / b;
}

// ACES filmic curve, then sRGB gamma
vec3 tonemap(vec3 color){
    const mat3 aces_in = mat3(
        vec3(0.59719, 0.07600, 0.02840),
        vec3(0.35458, 0.90834, 0.13383),
        vec3(0.04823, 0.01566, 0.83777)
    );
    const mat3 aces_out = mat3(
        vec3( 1.60475, -0.10208, -0.00327),
        vec3(-0.53108,  1.10813, -0.07276),
        vec3(-0.07367, -0.00605,  1.07602)
    );
    color *= exposure / 0.6;
    color = aces_out * rrt_odt_fit(aces_in * color);
    return pow(clamp(color, 0.0, 1.0), vec3(1.0 / 2.2));
}
"""

# Preetham-style analytic sky. `sun_position` is a unit vector.
SKY_COMMON = """
uniform vec3 sun_position;
uniform float turbidity;
uniform float rayleigh;
uniform float mie_coefficient;
uniform float mie_directional_g;

const vec3 UP = vec3(0.0, 1.0, 0.0);
const float E = 2.718281828459045;
const float PI = 3.141592653589793;
const vec3 TOTAL_RAYLEIGH = vec3(5.804542996261093E-6, 1.3562911419845635E-5, 3.0265902468824876E-5);
const vec3 MIE_CONST = vec3(1.8399918514433978E14, 2.7798023919660528E14, 4.0790479543861094E14);
const float CUTOFF_ANGLE = 1.6110731556870734;
const float STEEPNESS = 1.5;
const float EE = 1000.0;
const float MIE_ZENITH_LENGTH = 1.25E3;
const float RAYLEIGH_ZENITH_LENGTH = 8.4E3;
const float SUN_ANGULAR_DIAMETER_COS = 0.9999566769464484;
const float THREE_OVER_SIXTEENPI = 0.05968310365946075;
const float ONE_OVER_FOURPI = 0.07957747154594767;

float sun_intensity(float zenith_cos){
    zenith_cos = clamp(zenith_cos, -1.0, 1.0);
    return EE * max(0.0, 1.0 - pow(E, -((CUTOFF_ANGLE - acos(zenith_cos)) / STEEPNESS)));
}

vec3 total_mie(float t){
    float c = (0.2 * t) * 10E-18;
    return 0.434 * c * MIE_CONST;
}

float rayleigh_phase(float cos_theta){
    return THREE_OVER_SIXTEENPI * (1.0 + pow(cos_theta, 2.0));
}

float hg_phase(float cos_theta, float g){
    float g2 = pow(g, 2.0);
    float inv = 1.0 / pow(1.0 - 2.0 * g * cos_theta + g2, 1.5);
    return ONE_OVER_FOURPI * ((1.0 - g2) * inv);
}

vec3 sky_radiance(vec3 direction){
    vec3 sun_dir = normalize(sun_position);
    float sun_e = sun_intensity(dot(sun_dir, UP));
    float sunfade = 1.0 - clamp(1.0 - exp(sun_position.y / 450000.0), 0.0, 1.0);
    vec3 beta_r = TOTAL_RAYLEIGH * (rayleigh - (1.0 - sunfade));
    vec3 beta_m = total_mie(turbidity) * mie_coefficient;

    float zenith = acos(max(0.0, dot(UP, direction)));
    float inv = 1.0 / (cos(zenith) + 0.15 * pow(93.885 - ((zenith * 180.0) / PI), -1.253));
    vec3 fex = exp(-(beta_r * RAYLEIGH_ZENITH_LENGTH * inv + beta_m * MIE_ZENITH_LENGTH * inv));

    float cos_theta = dot(direction, sun_dir);
    vec3 beta_r_theta = beta_r * rayleigh_phase(cos_theta * 0.5 + 0.5);
    vec3 beta_m_theta = beta_m * hg_phase(cos_theta, mie_directional_g);
    vec3 ratio = (beta_r_theta + beta_m_theta) / (beta_r + beta_m);

    vec3 lin = pow(sun_e * ratio * (1.0 - fex), vec3(1.5));
    lin *= mix(vec3(1.0), pow(sun_e * ratio * fex, vec3(0.5)),
               clamp(pow(1.0 - dot(UP, sun_dir), 5.0), 0.0, 1.0));

    vec3 l0 = vec3(0.1) * fex;
    float sundisk = smoothstep(SUN_ANGULAR_DIAMETER_COS, SUN_ANGULAR_DIAMETER_COS + 0.00002, cos_theta);
    l0 += (sun_e * 19000.0 * fex) * sundisk;

    vec3 tex_color = (lin + l0) * 0.04 + vec3(0.0, 0.0003, 0.00075);
    return pow(tex_color, vec3(1.0 / (1.2 + (1.2 * sunfade))));
}
"""

VS_QUAD = """
#version 330
in vec2 in_vert;
out vec2 ndc;
out vec2 uv;
void main(){ gl_Position = vec4(in_vert, 0.0, 1.0); ndc = in_vert; uv = (in_vert + 1.0) * 0.5; }
"""

FS_SKY = (
    """
#version 330
in vec2 ndc; out vec4 fragColor;
uniform mat4 inv_view_proj;
uniform vec3 camera_position;
"""
    + SKY_COMMON
    + TONEMAP
    + """
void main(){
    vec4 far_point = inv_view_proj * vec4(ndc, 1.0, 1.0);
    vec3 direction = normalize(far_point.xyz / far_point.w - camera_position);
    fragColor = vec4(tonemap(sky_radiance(direction)), 1.0);
}
"""
)

# Bakes one cube face per draw. Face order and (s, t) mapping follow the
# GL cube map layout so rows can be written straight into the cube texture.
FS_ENV_BAKE = (
    """
#version 330
in vec2 uv; out vec4 fragColor;
uniform int face;
uniform int taps;
uniform float spread;
"""
    + SKY_COMMON
    + """
vec3 face_direction(int f, vec2 st){
    float sc = st.x * 2.0 - 1.0;
    float tc = st.y * 2.0 - 1.0;
    if (f == 0) return vec3( 1.0, -tc, -sc);
    if (f == 1) return vec3(-1.0, -tc,  sc);
    if (f == 2) return vec3( sc,  1.0,  tc);
    if (f == 3) return vec3( sc, -1.0, -tc);
    if (f == 4) return vec3( sc, -tc,  1.0);
    return vec3(-sc, -tc, -1.0);
}

void main(){
    vec3 n = normalize(face_direction(face, uv));
    vec3 t = normalize(cross(abs(n.y) < 0.99 ? UP : vec3(1.0, 0.0, 0.0), n));
    vec3 b = cross(n, t);
    vec3 acc = sky_radiance(n);
    float golden = 2.399963;
    for (int i = 0; i < taps; ++i){
        float r = spread * sqrt((float(i) + 0.5) / float(max(taps, 1)));
        float a = float(i) * golden;
        acc += sky_radiance(normalize(n + r * (cos(a) * t + sin(a) * b)));
    }
    fragColor = vec4(acc / float(taps + 1), 1.0);
}
"""
)

VS_WATER = """
#version 330
in vec3 in_position;
uniform mat4 model;
uniform mat4 view;
uniform mat4 projection;
out vec3 world_pos;
void main(){
    vec4 wp = model * vec4(in_position, 1.0);
    world_pos = wp.xyz;
    gl_Position = projection * view * wp;
}
"""

FS_WATER = (
    """
#version 330
in vec3 world_pos; out vec4 fragColor;
uniform sampler2D normal_sampler;
uniform samplerCube env_map;
uniform float time;
uniform float size;
uniform float distortion_scale;
uniform vec3 sun_color;
uniform vec3 sun_direction;
uniform vec3 eye;
uniform vec3 water_color;
"""
    + TONEMAP
    + """
vec4 get_noise(vec2 p){
    vec2 uv0 = (p / 103.0) + vec2(time / 17.0, time / 29.0);
    vec2 uv1 = p / 107.0 - vec2(time / -19.0, time / 31.0);
    vec2 uv2 = p / vec2(8907.0, 9803.0) + vec2(time / 101.0, time / 97.0);
    vec2 uv3 = p / vec2(1091.0, 1027.0) - vec2(time / 109.0, time / -113.0);
    vec4 noise = texture(normal_sampler, uv0) + texture(normal_sampler, uv1)
               + texture(normal_sampler, uv2) + texture(normal_sampler, uv3);
    return noise * 0.5 - 1.0;
}

void sun_light(vec3 n, vec3 eye_dir, float shiny, float spec, float diffuse,
               inout vec3 diffuse_color, inout vec3 specular_color){
    vec3 r = normalize(reflect(-sun_direction, n));
    float d = max(0.0, dot(eye_dir, r));
    specular_color += pow(d, shiny) * sun_color * spec;
    diffuse_color += max(dot(sun_direction, n), 0.0) * sun_color * diffuse;
}

void main(){
    vec4 noise = get_noise(world_pos.xz * size);
    vec3 n = normalize(noise.xzy * vec3(1.5, 1.0, 1.5));

    vec3 diffuse_light = vec3(0.0);
    vec3 specular_light = vec3(0.0);
    vec3 to_eye = eye - world_pos;
    vec3 eye_dir = normalize(to_eye);
    sun_light(n, eye_dir, 100.0, 2.0, 0.5, diffuse_light, specular_light);

    vec2 distortion = n.xz * (0.001 + 1.0 / length(to_eye)) * distortion_scale;
    vec3 r = reflect(-eye_dir, n);
    r.y = abs(r.y);
    r.xz += distortion;
    vec3 reflection = texture(env_map, normalize(r)).rgb;

    float theta = max(dot(eye_dir, n), 0.0);
    float rf0 = 0.3;
    float reflectance = rf0 + (1.0 - rf0) * pow(1.0 - theta, 5.0);
    vec3 scatter = max(0.0, dot(n, eye_dir)) * water_color;
    vec3 albedo = mix(sun_color * diffuse_light * 0.3 + scatter,
                      vec3(0.1) + reflection * 0.9 + reflection * specular_light,
                      reflectance);
    fragColor = vec4(tonemap(albedo), 1.0);
}
"""
)

VS_MESH = """
#version 330
in vec3 in_position;
in vec3 in_normal;
in vec3 in_color;
uniform mat4 model;
uniform mat4 view;
uniform mat4 projection;
out vec3 world_pos;
out vec3 normal;
out vec3 color;
void main(){
    vec4 wp = model * vec4(in_position, 1.0);
    world_pos = wp.xyz;
    normal = mat3(transpose(inverse(model))) * in_normal;
    color = in_color;
    gl_Position = projection * view * wp;
}
"""

FS_MESH = (
    """
#version 330
in vec3 world_pos;
in vec3 normal;
in vec3 color;
out vec4 fragColor;
uniform samplerCube env_map;
uniform vec3 eye;
uniform vec3 sun_direction;
uniform vec3 sun_color;
uniform vec3 emissive;
uniform float roughness;
"""
    + TONEMAP
    + """
void main(){
    vec3 n = normalize(normal);
    vec3 v = normalize(eye - world_pos);
    float ndl = max(dot(n, sun_direction), 0.0);

    vec3 irradiance = texture(env_map, n).rgb;
    vec3 diffuse = color * (irradiance + 0.5 * ndl * sun_color);

    float fresnel = 0.04 + 0.96 * pow(1.0 - max(dot(n, v), 0.0), 5.0);
    vec3 spec = texture(env_map, reflect(-v, n)).rgb * fresnel * (1.0 - roughness);
    vec3 h = normalize(v + sun_direction);
    float shininess = mix(256.0, 8.0, roughness);
    spec += sun_color * pow(max(dot(n, h), 0.0), shininess) * ndl * (1.0 - 0.7 * roughness);

    fragColor = vec4(tonemap(diffuse + spec + emissive), 1.0);
}
"""
)

VS_TEXT = """
#version 330
in vec2 in_vert;
in vec2 in_uv;
out vec2 uv;
void main() {
    gl_Position = vec4(in_vert, 0.0, 1.0);
    uv = in_uv;
}
"""

FS_TEXT = """
#version 330
in vec2 uv;
out vec4 fragColor;
uniform sampler2D fontTexture;
uniform vec3 textColor;
void main() {
    float alpha = texture(fontTexture, uv).r;
    fragColor = vec4(textColor, alpha);
}
"""
