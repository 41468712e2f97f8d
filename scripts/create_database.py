import os
import subprocess

# ======================
# Global Config
# ======================

MYSQL_IMAGE = "mysql:oraclelinux9"
MYSQL_ROOT_PASSWORD = "1234"
MYSQL_DATABASE = "rm_db"

CONTAINER_NAME = "mysql-exclusive-control"
PORT = 33061
BASE_DATA_DIR = "./data"
INIT_DIR = "./data/db-init"

# Exclusive-control tables: primary key columns + one version column.
TABLES = {
    "EXCLUSIVE_USER_MST": ["USER_ID", "PK2", "PK3"],
}

# ======================
# Utils
# ======================

def run(cmd: list[str]):
    print(">>", " ".join(cmd))
    subprocess.run(cmd, check=True)


def remove_container_if_exists(name: str):
    subprocess.run(
        ["docker", "rm", "-f", name],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )


def table_ddl(table: str, key_columns: list[str]) -> str:
    cols = ",\n".join(f"    {col} VARCHAR(64) NOT NULL" for col in key_columns)
    return (
        f"CREATE TABLE IF NOT EXISTS {table} (\n"
        f"{cols},\n"
        f"    VERSION BIGINT NOT NULL,\n"
        f"    PRIMARY KEY ({', '.join(key_columns)})\n"
        f") ENGINE=InnoDB;\n"
    )


def write_init_sql(init_dir: str):
    os.makedirs(init_dir, exist_ok=True)
    path = os.path.join(init_dir, "01_exclusive_control.sql")
    with open(path, "w", encoding="utf-8") as f:
        f.write(f"USE {MYSQL_DATABASE};\n")
        for table, key_columns in TABLES.items():
            f.write(table_ddl(table, key_columns))
    print(f"init sql written: {path}")

# ======================
# Main Logic
# ======================

def main():
    data_dir = os.path.join(BASE_DATA_DIR, CONTAINER_NAME)
    os.makedirs(data_dir, exist_ok=True)
    write_init_sql(INIT_DIR)

    remove_container_if_exists(CONTAINER_NAME)

    run([
        "docker", "run", "-d",
        "--name", CONTAINER_NAME,
        "-e", f"MYSQL_ROOT_PASSWORD={MYSQL_ROOT_PASSWORD}",
        "-e", f"MYSQL_DATABASE={MYSQL_DATABASE}",
        "-p", f"{PORT}:3306",
        "-v", f"{os.path.abspath(data_dir)}:/var/lib/mysql",
        "-v", f"{os.path.abspath(INIT_DIR)}:/docker-entrypoint-initdb.d",
        MYSQL_IMAGE
    ])

    print(f"{CONTAINER_NAME} started at localhost:{PORT}")
    print("Integration tests:")
    print(f"  EXCLUSIVE_CONTROL_TEST_MYSQL=1 EXCLUSIVE_CONTROL_MYSQL_PASSWORD={MYSQL_ROOT_PASSWORD} pytest test/impl")


if __name__ == "__main__":
    main()
