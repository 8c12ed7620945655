import requests
import json

BASE_URL = "http://localhost:8000/api"  # 后端API基础URL
USER_HEADERS = {"X-User-Id": "1"}
SAMPLE_CSV = (
    "name,age,city,score\n"
    "John,30,Tokyo,88.5\n"
    "Jane,25,Osaka,92\n"
    "jane ,25,osaka,92\n"
    "Ken,,Nagoya,n/a\n"
    "Yuki,41,Tokyo,75.25"
)


def print_response(response: requests.Response, step_name: str):
    """打印响应信息"""
    print(f"--- {step_name} ---")
    print(f"URL: {response.url}")
    print(f"Status Code: {response.status_code}")
    try:
        response_json = response.json()
        print("Response JSON:")
        print(json.dumps(response_json, indent=2, ensure_ascii=False))
        return response_json
    except requests.exceptions.JSONDecodeError:
        print("Response Text (Not JSON):")
        print(response.text)
        return None
    finally:
        print("\n")


def main():
    lines = SAMPLE_CSV.strip().split("\n")
    headers = [h.strip() for h in lines[0].split(",")]

    # --- 步骤 1: 上传数据集 ---
    print(">>> 步骤 1: 上传数据集...")
    try:
        response_upload = requests.post(
            f"{BASE_URL}/datasets/upload",
            json={
                "fileName": "people.csv",
                "csvContent": SAMPLE_CSV,
                "headers": headers,
                "rowCount": len(lines) - 1,
            },
            headers=USER_HEADERS,
        )
    except requests.exceptions.ConnectionError as e:
        print(f"错误: 无法连接到后端服务 {BASE_URL}。请确保后端服务正在运行。 {e}")
        return

    upload_result = print_response(response_upload, "上传响应")
    if not upload_result or response_upload.status_code != 200:
        print("上传失败，测试中止。")
        return
    dataset_id = upload_result["id"]

    # --- 步骤 2: 数据结构摘要 ---
    print(f">>> 步骤 2: 获取数据结构摘要 (Dataset ID: {dataset_id})...")
    response_structure = requests.get(f"{BASE_URL}/datasets/{dataset_id}/structure", headers=USER_HEADERS)
    print_response(response_structure, "数据结构响应")

    # --- 步骤 3: 生成洞察 ---
    print(">>> 步骤 3: 生成AI洞察...")
    payload = {"datasetId": dataset_id, "csvContent": SAMPLE_CSV, "headers": headers}
    response_generate = requests.post(f"{BASE_URL}/insights/generate", json=payload, headers=USER_HEADERS)
    print_response(response_generate, "洞察生成响应")
    response_insights = requests.get(f"{BASE_URL}/insights/{dataset_id}", headers=USER_HEADERS)
    print_response(response_insights, "洞察列表响应")

    # --- 步骤 4: 数据清洗 ---
    print(">>> 步骤 4: AI数据清洗...")
    response_clean = requests.post(f"{BASE_URL}/cleaning/clean", json=payload, headers=USER_HEADERS)
    clean_result = print_response(response_clean, "数据清洗响应")
    if not clean_result or response_clean.status_code != 200:
        print("数据清洗失败，跳过导出。")
        return

    # --- 步骤 5: 导出清洗后的数据集 ---
    print(">>> 步骤 5: 导出清洗后的数据集...")
    response_export = requests.post(
        f"{BASE_URL}/cleaning/export",
        json={"datasetId": dataset_id, "newFileName": ""},
        headers=USER_HEADERS,
    )
    print_response(response_export, "导出响应")


if __name__ == "__main__":
    main()
